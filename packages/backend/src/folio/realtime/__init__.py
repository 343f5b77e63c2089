"""Real-time content updates — polling change detection over SSE.

Learn: There is no message broker. Each open page holds one
text/event-stream connection; its StreamSession re-reads the tracked
collections every few seconds, fingerprints them, and pushes a collection
only when its fingerprint changed since the last push to that session.

    client ──GET /api/v1/realtime──▶ StreamSession
                                        │ every poll_interval
                                        ├─ guarded fetch × N (concurrent)
                                        ├─ fingerprint compare
                                        └─ emit changed snapshots
"""
