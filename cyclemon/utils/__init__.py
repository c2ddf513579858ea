"""
Adapters around the CYCLEMON engine: structured logging, CSV trace
ingestion, and JSON configuration loading.
"""
