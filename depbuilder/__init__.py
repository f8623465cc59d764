"""Locate, install and describe a host project's vendored dependency."""
