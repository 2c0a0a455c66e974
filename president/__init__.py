"""
President - Real-time room engine for the President card game.

One authoritative room actor per game room:
- Card, deck and play-legality rules
- Turn/round state machine driven by a reducer
- Connection registry and broadcast fan-out over WebSockets
- Elo deltas and final rankings for completed matches
"""

__version__ = "0.1.0"
