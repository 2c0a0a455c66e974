"""
President CLI - Command-line interface for the room server.

Usage:
    president serve [--host H] [--port P]      Run the WebSocket server
    president simulate [--players N] [--seed S] [--rounds R]
                                               Play a bot game in-process
"""

import argparse
import logging
import sys
from random import Random


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="President - Authoritative room server for the card game",
        prog="president",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the room server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--log-level", default=None, help="Overrides PRESIDENT_LOG_LEVEL")

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Play a game between bots")
    sim_parser.add_argument("--players", type=int, default=4, help="Number of bot players")
    sim_parser.add_argument("--seed", type=int, default=None, help="Shuffle seed")
    sim_parser.add_argument("--rounds", type=int, default=1, help="Rounds per game")
    sim_parser.add_argument("--two-decks", action="store_true", help="Force two decks")
    sim_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the result")

    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the FastAPI app under uvicorn."""
    import uvicorn

    from .api import create_app
    from .config import Settings

    settings = Settings.from_env()
    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings=settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=level.lower())


def run_simulation(players: int, seed=None, rounds: int = 1, two_decks: bool = False, on_event=None):
    """
    Play a full game between bots that always make their lowest legal play.

    Returns:
        The final GameState (phase game_end)
    """
    from .engine_core import Action, GamePhase, GameState, Reducer, RoomRules, legal_plays

    rules = RoomRules(two_decks=two_decks, rounds_per_game=rounds)
    if not rules.min_players <= players <= rules.max_players:
        raise ValueError(f"Need {rules.min_players}-{rules.max_players} players, got {players}")

    reducer = Reducer(rng=Random(seed))
    state = GameState(room_code="SIMULA", rules=rules)

    def step(action):
        nonlocal state
        result = reducer.apply(state, action)
        if not result.success:
            raise RuntimeError(f"Bot action rejected: {result.error}")
        state = result.new_state
        if on_event:
            for event in result.events:
                on_event(event)

    bot_ids = [f"bot{i + 1}" for i in range(players)]
    for bot_id in bot_ids:
        step(Action.join(bot_id, bot_id.capitalize()))

    while state.phase != GamePhase.GAME_END:
        if state.phase == GamePhase.LOBBY:
            for bot_id in bot_ids:
                step(Action.set_ready(bot_id, True))
            continue

        current = state.current_player
        plays = legal_plays(current.hand, state.pile)
        if plays:
            step(Action.play_cards(current.player_id, plays[0]))
        else:
            step(Action.pass_turn(current.player_id))

    return state


def cmd_simulate(args):
    """Play a bot game and print the events."""
    from .results import build_match_result

    def show(event):
        if not args.quiet:
            print(_describe_event(event))

    try:
        state = run_simulation(
            args.players,
            seed=args.seed,
            rounds=args.rounds,
            two_decks=args.two_decks,
            on_event=show,
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = build_match_result(state)
    print("\nFinal standings:")
    for player in result.players:
        print(f"  {player.rank}. {player.handle:<8} {player.role:<15} elo {player.elo_delta:+d}")


def _describe_event(event) -> str:
    data = event.to_wire()
    kind = data.pop("type")
    if kind == "cards_played":
        cards = " ".join(f"{c['rank']}{c['suit'][0].upper()}" for c in data["cards"])
        return f"{data['playerId']:>6} plays {cards}"
    if kind == "turn_passed":
        return f"{data['playerId']:>6} passes"
    if kind == "system_message":
        return f"  -- {data['message']}"
    if kind == "turn_changed":
        return f"  -> {data['playerId']}"
    return f"[{kind}] {data}"


if __name__ == "__main__":
    main()
