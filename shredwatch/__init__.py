"""Decode shred-stream entries and describe Pump and Pump AMM transactions."""

__version__ = "0.1.0"