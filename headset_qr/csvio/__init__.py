"""CSV roster ingestion: tokenizing, shape detection and normalization."""
