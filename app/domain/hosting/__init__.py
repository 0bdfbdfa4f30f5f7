"""
Hosting Domain

Peer-to-peer pet hosting: host profiles, stay requests and their lifecycle,
host calendars, reviews and photos.

LAYOUT:
- pricing.py       itemized stay price (pure)
- availability.py  half-open interval math, host capacity and pet conflicts
- state_machine.py booking lifecycle, who may trigger each transition
- trust.py         response / completion / rating metrics, super host badge
- repository.py    SQLAlchemy queries
- service.py       orchestration, locking and commits
- router.py        FastAPI endpoints under /pet-hosting
"""
