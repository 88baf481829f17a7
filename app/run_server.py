from config.settings import settings

from collectors.result_poller import ResultPoller
from collectors.rolling_cache import RollingCache

from server.api import create_app

from upstream.client import UpstreamClient


def build_client() -> UpstreamClient:
    return UpstreamClient(
        settings.UPSTREAM_URL,
        page_size=settings.PAGE_SIZE,
        type_id=settings.TYPE_ID,
        language=settings.LANGUAGE,
        signature=settings.SIGNATURE,
        timeout=settings.REQUEST_TIMEOUT,
        extra_headers=settings.EXTRA_HEADERS,
    )


def build_cache() -> RollingCache:
    return RollingCache(
        capacity=settings.CACHE_CAPACITY,
        retention_seconds=settings.retention_seconds,
    )


def main():
    client = build_client()
    cache = build_cache()
    poller = ResultPoller(client, cache, settings.POLL_INTERVAL)

    app = create_app(cache, poller, preview_chars=settings.DEBUG_PREVIEW_CHARS)

    print(
        f"[SERVER] capacity={cache.capacity} retention_ms={cache.retention_ms} "
        f"listening on {settings.HOST}:{settings.PORT}"
    )
    poller.start()
    try:
        app.run(host=settings.HOST, port=settings.PORT)
    except KeyboardInterrupt:
        print("[SERVER] shutdown requested (KeyboardInterrupt)")
    finally:
        poller.stop(timeout=1.0)
        client.close()


if __name__ == "__main__":
    main()
