from locust import HttpUser, task, between

class NotebookUser(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        payload = {"email": "load@lab.com", "password": "password"}
        r = self.client.post("/api/auth/register", json=payload)
        if r.status_code != 200:
            r = self.client.post("/api/auth/login", json=payload)
        token = r.json().get("access_token")
        self.headers = {"Authorization": f"Bearer {token}"}
        r = self.client.post("/api/items", json={"title": "bench reagent"}, headers=self.headers)
        self.item_id = r.json().get("id")

    @task(3)
    def list_experiments(self):
        self.client.get("/api/experiments", headers=self.headers)

    @task(2)
    def link_item(self):
        r = self.client.post("/api/experiments", json={"title": "bench run"}, headers=self.headers)
        exp_id = r.json().get("id")
        self.client.post(
            f"/api/experiments/{exp_id}/items_links/{self.item_id}",
            json={"action": "create"},
            headers=self.headers,
            name="/api/experiments/[id]/items_links/[id]",
        )

    @task(1)
    def export_items(self):
        self.client.get(
            "/api/export",
            params={"entity_type": "items", "ids": str(self.item_id)},
            headers=self.headers,
        )
