"""
Crawler layer: fetching, gated-host login, link discovery and post extraction.
"""
