"""Domain layer: typed records and client interfaces."""
