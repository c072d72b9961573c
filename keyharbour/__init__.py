"""Client classes for licence and key/value parts of the KeyHarbour API, with encryption, checksum, output and concurrency helpers."""

__version__ = "0.1.0"