"""Similia: practice management backend for homeopathy practitioners."""
