"""pygls LSP server for allday."""

from loguru import logger
from lsprotocol import types
from pygls.lsp import server as pygls_server

from allday import analyzer as allday_analyzer
from allday import config as allday_config
from allday import rules
from allday.rules import base

server = pygls_server.LanguageServer("allday", "v0.1.0")
analyzer = allday_analyzer.Analyzer(
    rules=allday_config.active_rules(rules.ALL_RULES, allday_config.load_config())
)

_SEVERITY_MAP = {
    base.Severity.ERROR: types.DiagnosticSeverity.Error,
    base.Severity.WARNING: types.DiagnosticSeverity.Warning,
    base.Severity.INFORMATION: types.DiagnosticSeverity.Information,
    base.Severity.HINT: types.DiagnosticSeverity.Hint,
}


def _utf16_col(line: str, col: int) -> int:
    """Convert a code-point column on *line* to UTF-16 code units."""
    return len(line[:col].encode("utf-16-le")) // 2


def _to_range(diag: base.Diagnostic, lines: list[str]) -> types.Range:
    """Return the LSP range of *diag*, in the client's UTF-16 positions."""
    start_line, end_line = diag.line - 1, diag.end_line - 1
    return types.Range(
        start=types.Position(
            line=start_line, character=_utf16_col(lines[start_line], diag.col)
        ),
        end=types.Position(
            line=end_line, character=_utf16_col(lines[end_line], diag.end_col)
        ),
    )


def _to_lsp(diag: base.Diagnostic, lines: list[str]) -> types.Diagnostic:
    """Convert an allday Diagnostic to an LSP Diagnostic."""
    return types.Diagnostic(
        range=_to_range(diag, lines),
        message=f"{diag.rule_id} {diag.message}",
        severity=_SEVERITY_MAP[diag.severity],
        code=diag.rule_id,
        source="allday",
    )


def _overlaps(diag: base.Diagnostic, requested: types.Range) -> bool:
    """Return True if the diagnostic's lines intersect the requested range."""
    return diag.line - 1 <= requested.end.line and diag.end_line - 1 >= requested.start.line


def _to_code_action(
    uri: str, diag: base.Diagnostic, fix: base.Fix, lines: list[str]
) -> types.CodeAction:
    """Build a quick fix that replaces the diagnostic range with *fix*."""
    return types.CodeAction(
        title=f"Replace with `{fix.replacement}`",
        kind=types.CodeActionKind.QuickFix,
        diagnostics=[_to_lsp(diag, lines)],
        edit=types.WorkspaceEdit(
            changes={
                uri: [
                    types.TextEdit(
                        range=_to_range(diag, lines), new_text=fix.replacement
                    )
                ]
            }
        ),
        is_preferred=True,
    )


def _publish(ls: pygls_server.LanguageServer, uri: str) -> None:
    """Analyze a document and publish diagnostics to the client."""
    source = ls.workspace.get_text_document(uri).source
    lines = source.split("\n")
    diagnostics = analyzer.analyze(source)
    logger.debug("Publishing {} diagnostics for {}", len(diagnostics), uri)
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(
            uri=uri,
            diagnostics=[_to_lsp(diag, lines) for diag in diagnostics],
        )
    )


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(
    ls: pygls_server.LanguageServer,
    params: types.DidOpenTextDocumentParams,
) -> None:
    """Analyze a newly opened document."""
    _publish(ls, params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(
    ls: pygls_server.LanguageServer,
    params: types.DidChangeTextDocumentParams,
) -> None:
    """Re-analyze a document after every change."""
    _publish(ls, params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(
    ls: pygls_server.LanguageServer,
    params: types.DidCloseTextDocumentParams,
) -> None:
    """Clear diagnostics when a document is closed."""
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=params.text_document.uri, diagnostics=[])
    )


@server.feature(
    types.TEXT_DOCUMENT_CODE_ACTION,
    types.CodeActionOptions(code_action_kinds=[types.CodeActionKind.QuickFix]),
)
def code_action(
    ls: pygls_server.LanguageServer,
    params: types.CodeActionParams,
) -> list[types.CodeAction]:
    """Offer a quick fix for every fixable diagnostic in the requested range."""
    uri = params.text_document.uri
    source = ls.workspace.get_text_document(uri).source
    lines = source.split("\n")
    return [
        _to_code_action(uri, diag, diag.fix, lines)
        for diag in analyzer.analyze(source)
        if diag.fix is not None and _overlaps(diag, params.range)
    ]


def start() -> None:
    """Start the LSP server over stdio."""
    server.start_io()
