"""shotencode — project descriptor to encode-job pipeline.

Turn a YAML project descriptor (sequences, tracks, trimmed shots) into
ordered encode-job items and hand them to an encode engine.
The bundled engine drives ffmpeg, including multi-pass progress.
"""
