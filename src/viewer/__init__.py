"""Viewer side: remote screen display and input forwarding."""
