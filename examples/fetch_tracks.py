#!/usr/bin/env python3

import asyncio
import logging

import click

from spotcache import ClientConfig, RateLimited, SpotifyClient, extract_spotify_id, with_rate_limit_retries


async def run(client_id: str, client_secret: str, refs: tuple[str, ...], market: str | None, repeat: int) -> None:
    ids = []
    for ref in refs:
        parsed = extract_spotify_id(ref)
        ids.append(parsed[1] if parsed else ref)

    config = ClientConfig.from_dict({"auth": {"single_flight": True}})
    async with SpotifyClient(client_id, client_secret, config=config) as client:
        for attempt in range(repeat):
            try:
                tracks = await with_rate_limit_retries(
                    lambda: client.get_several_tracks(ids, market=market), max_delay_seconds=30
                )
            except RateLimited as exc:
                print(f"gave up, rate limited for {exc.retry_after_seconds}s")
                return
            print(f"pass {attempt + 1}:")
            for track in tracks:
                artists = ", ".join(a.name for a in track.artists)
                print(f"  {track.name} - {artists} ({track.album.name})")


@click.command()
@click.option("--client-id", envvar="SPOTIFY_CLIENT_ID", required=True)
@click.option("--client-secret", envvar="SPOTIFY_CLIENT_SECRET", required=True)
@click.option("--market", default=None, help="ISO 3166-1 alpha-2 market code")
@click.option("--repeat", default=2, help="Fetch the same tracks N times; later passes hit the cache.")
@click.option("--verbose", is_flag=True)
@click.argument("refs", nargs=-1, required=True)
def main(client_id: str, client_secret: str, market: str | None, repeat: int, verbose: bool, refs: tuple[str, ...]) -> None:
    """Fetch tracks by ID or open.spotify.com link."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    asyncio.run(run(client_id, client_secret, refs, market, repeat))


if __name__ == "__main__":
    main()
