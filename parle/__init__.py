"""Parle backend: audio upload, transcription and summarization service."""
