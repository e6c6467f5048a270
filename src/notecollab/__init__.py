"""
NoteCollab - real-time collaboration layer for notes

Presence rosters and edit/cursor/selection/typing relay between everyone
editing the same note, over websockets.
"""

__version__ = "1.0.0"
