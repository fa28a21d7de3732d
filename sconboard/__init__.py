"""
SConboard — Package Initializer
================================

What: Service center onboarding workflow (form state, validation, location
      acquisition and reverse-geocoding enrichment).
Who:  Imported by whatever drives the form (a UI adapter, a script, the tests).

Architecture Note:

    ┌─────────────────────────────────────┐
    │     FormSession (side effects)      │  ← async triggers, busy guards
    ├─────────────────────────────────────┤
    │   State (immutable value + reduce)  │  ← pure per-event functions
    ├─────────────────────────────────────┤
    │  Services (location, geocoder,      │  ← external collaborators
    │  images, previews, submission)      │
    ├─────────────────────────────────────┤
    │        Schemas (Pydantic)           │  ← FormRecord, ImageFile, ...
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
