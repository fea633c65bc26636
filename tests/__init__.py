"""Test suite for the object transformer.

Unit tests live under ``test_unit``, HTTP-level tests of the health server
under ``test_functional`` and LocalStack-backed S3 tests under
``test_integration``.
"""
