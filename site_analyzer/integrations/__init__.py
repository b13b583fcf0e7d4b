"""Adapters for page fetching, browser probes, audit services and the LLM."""
