"""
MMart Fun - arithmetic quiz game engine with a Discord front-end.
"""
