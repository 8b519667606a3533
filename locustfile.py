from locust import HttpUser, task, between
import os

# Token of an existing user (see backend_ldgrowth.tools.create_store)
API_TOKEN = os.getenv("LDGROWTH_API_TOKEN", "")


class LDGrowthUser(HttpUser):
    wait_time = between(1, 2)

    def on_start(self):
        self.client.headers["Authorization"] = f"Bearer {API_TOKEN}"

    @task
    def health(self):
        self.client.get("/health")

    @task(3)
    def dashboard(self):
        self.client.get("/api/dashboard")

    @task(2)
    def situational_questions(self):
        self.client.get("/api/leadership/situational/questions")

    @task
    def notifications(self):
        self.client.get("/api/notifications", params={"unread_only": True})
