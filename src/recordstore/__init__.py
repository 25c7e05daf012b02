"""RecordStore -- request broker for a personal music library.

Users browse MusicBrainz and request artists or albums; an admin approves
requests, which are then handed to Lidarr for acquisition.

Core modules:
    config           -- Process configuration via pydantic-settings (RECORDSTORE_* env
                        vars) and loguru setup.
    ratelimit        -- Process-wide minimum-interval limiter and the fetcher that every
                        MusicBrainz call goes through.
    store            -- SQLite store for requests and the flat Lidarr settings.
    catalog          -- Search and artist detail with bounded cover-art enrichment.
    requests_service -- Request lifecycle; approval makes one Lidarr add attempt.
    reconciler       -- Best-effort acquisition plus an admin-triggered sweep for
                        approved requests that never reached Lidarr.
    integration      -- Lidarr settings display (masked key), save, connection test.
    cli              -- Click CLI entry point.

Subpackages:
    api -- External API clients (MusicBrainz, Cover Art Archive, Lidarr)
"""

__version__ = "1.0.0"
