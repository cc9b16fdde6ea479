"""Voice translation services.

This package contains the service modules that implement the voice
translation engine.

Service Categories:
- Audio: Validation, quality scoring, decoding and normalization
- Providers: Speech recognition, translation and synthesis adapters
- Core: Result cache and statistics
- Pipeline / Task queue: Stage orchestration and batch scheduling
- Engine: Public facade (submit, stats, health, cache maintenance)

External integrations:
- gcp: Google Cloud Speech, Translation, TTS
"""
