"""Locust load script for the ListHub addon.
Usage:
  LISTHUB_TOKEN="<token>" LISTHUB_CATALOGS="aiolists-123-L,trakt_trending_movies" \
    locust -f perf/locustfile.py --host http://localhost:8000
"""
import os
from locust import HttpUser, task, between

TOKEN = os.getenv("LISTHUB_TOKEN", "")
CATALOGS = [c.strip() for c in os.getenv("LISTHUB_CATALOGS", "trakt_trending_movies").split(",") if c.strip()]
PAGES = int(os.getenv("LISTHUB_PAGES", "3"))
PAGE_SIZE = 100


class ListHubUser(HttpUser):
    wait_time = between(0.2, 1.0)

    def on_start(self):
        if not TOKEN:
            raise RuntimeError("Set LISTHUB_TOKEN env var before running locust")

    @task(1)
    def manifest(self):
        self.client.get(f"/{TOKEN}/manifest.json")

    @task(3)
    def first_page(self):
        for catalog_id in CATALOGS:
            self.client.get(f"/{TOKEN}/catalog/movie/{catalog_id}.json", name="/catalog/movie/[id]")

    @task(1)
    def page_through(self):
        # Later pages and genre variants each get their own cache entry
        for catalog_id in CATALOGS:
            for page in range(1, PAGES):
                self.client.get(
                    f"/{TOKEN}/catalog/movie/{catalog_id}/skip={page * PAGE_SIZE}.json",
                    name="/catalog/movie/[id]/skip",
                )
            self.client.get(
                f"/{TOKEN}/catalog/movie/{catalog_id}/genre=Drama.json",
                name="/catalog/movie/[id]/genre",
            )
