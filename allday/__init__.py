"""allday: prefer ActiveSupport ``all_<unit>`` accessors over beginning/end ranges."""
