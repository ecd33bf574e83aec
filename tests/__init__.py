"""
Test suite for the Prompt Import Service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_text_segmenter.py -v
"""
