"""
Heartline — Intimacy Scoring for Two-Person Relationships
==========================================================
Awards, caps, decays and reverses the "intimacy" points a paired couple
earns by writing notes, logging moments, completing quests and so on.
The ledger stays consistent under client retries and concurrent requests:
every award is keyed for idempotency and applied in one transaction.

Package layout::

    heartline/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Level curve + title lookup
    ├── errors.py          # NotFound / Forbidden / InvalidCursor
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helpers
    │   └── models.py      # users, couples, intimacy_events
    ├── engine/
    │   ├── rules.py       # Static rule table (game balance)
    │   ├── clock.py       # Clock abstraction + UTC day boundary
    │   ├── events.py      # Closed set of event kinds
    │   └── scoring.py     # Pure per-type point computation + caps
    ├── services/
    │   ├── intimacy_service.py  # award / revoke / backfill / summary / feed
    │   ├── ledger_view.py       # "today" aggregates read from the ledger
    │   ├── cursor.py            # Opaque pagination cursor
    │   └── collaborators.py     # Hooks for notes, moments, quests, couples
    └── api/
        ├── __main__.py    # python -m heartline.api
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine/session/JWT dependencies
        └── routes/        # Intimacy endpoints
"""

__version__ = "0.1.0"
