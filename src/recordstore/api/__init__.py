"""External API clients.

Submodules:
    musicbrainz -- MusicBrainz catalog search and lookup (rate limited)
    coverart    -- Cover Art Archive resolver (best effort, never raises)
    lidarr      -- Lidarr REST client configured from the settings store
"""
