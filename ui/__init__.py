"""
UI Module - Host surfaces for LCC Assistant
============================================

- web: FastAPI JSON API
- terminal: Textual TUI
"""
