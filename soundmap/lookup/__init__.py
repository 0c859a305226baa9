from .spotify import NullLookup, SpotifyLookup, TrackLookup, TrackSummary, get_default_lookup

__all__ = ["NullLookup", "SpotifyLookup", "TrackLookup", "TrackSummary", "get_default_lookup"]
