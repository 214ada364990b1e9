"""Locust load test for the SEO Enrichment Service API."""

from __future__ import annotations

import os
import uuid
from typing import List

from locust import FastHttpUser, between, task

API_KEY = os.getenv("SEO_ENRICHMENT_API_KEY", "test-key")
DOMAINS: List[str] = [
    "example-webshop.nl",
    "bouwbedrijf-voorbeeld.nl",
    "https://www.shop.test/collections",
]


class SubmitterUser(FastHttpUser):
    wait_time = between(1, 5)

    def on_start(self) -> None:
        self.headers = {"X-API-Key": API_KEY}
        self.job_ids: List[str] = []

    @task(1)
    def submit_job(self) -> None:
        payload = {
            "name": f"load-test-{uuid.uuid4().hex[:8]}",
            "domains": DOMAINS,
            "enrichment_kind": "webshop",
        }
        with self.client.post("/api/jobs", json=payload, headers=self.headers, catch_response=True) as response:
            if response.status_code == 200:
                self.job_ids.append(response.json()["job_id"])
            else:
                response.failure(f"unexpected status {response.status_code}")

    @task(3)
    def poll_jobs(self) -> None:
        self.client.get("/api/jobs", headers=self.headers)
        if self.job_ids:
            self.client.get(f"/api/jobs/{self.job_ids[-1]}", headers=self.headers, name="/api/jobs/[id]")
