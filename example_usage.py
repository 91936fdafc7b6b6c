# example_usage.py

from src.api_client import ApiClient, BadResponseError, MemoryCache
from src.api_client.core.events import REQUEST_FAIL
from src.api_client.core.logging import LoggingConfig
from src.api_client.core.config import ApiClientConfig


def main():
    # Создаем клиент
    config = ApiClientConfig.create(
        "https://jsonplaceholder.typicode.com/",
        headers={"X-Client": "example"},
        logging=LoggingConfig.create(level="INFO"),
        add_request_id=True,
    )
    client = ApiClient(config=config, cache=MemoryCache())
    client.events.attach(REQUEST_FAIL, lambda event: print(f"Failed: {event.params['error']}"))

    # Делаем запросы
    print("\n=== First request ===")
    post = client.get_cached("/posts/1", "post-1", ttl=300)
    print(f"Title: {post['title']}")

    print("\n=== Second request (should be cached) ===")
    post = client.get_cached("/posts/1", "post-1", ttl=300)
    print(f"Status of last network call: {client.response.status_code}")

    print("\n=== POST request ===")
    created = client.post("/posts", {"body": {"title": "Test Post", "body": "This is a test", "userId": 1}})
    print(f"Created ID: {created['id']}")

    print("\n=== Missing resource ===")
    try:
        client.get("/posts/0/missing")
    except BadResponseError as e:
        print(f"HTTP {e.status_code}")

    client.close()


if __name__ == "__main__":
    main()
