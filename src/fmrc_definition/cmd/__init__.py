"""Entrypoints to the fmrc-definition tools."""
