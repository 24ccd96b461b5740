"""GroupGainz - Settlement semanal de accountability."""
