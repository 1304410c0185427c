"""Test fixtures and builders."""

from .builders import FIXED_NOW, FakeClock, build_signal, date_offset, iso_ago, iso_in

__all__ = ["FIXED_NOW", "FakeClock", "build_signal", "date_offset", "iso_ago", "iso_in"]
