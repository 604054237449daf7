"""REST API client for the romatype server."""

import requests


class RomatypeAPIClient:
    """Client for communicating with the romatype REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params or {},
                                    timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data,
                                     timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_settings(self) -> dict:
        return self._get("/api/settings")

    def get_kps(self) -> dict:
        return self._get("/api/kps")

    def get_weakness(self) -> dict:
        return self._get("/api/weakness")

    def get_session_words(self, count=None, mode: str = None) -> dict:
        """Get the ordered words for a new session with their time limits."""
        data = {}
        if count is not None:
            data['count'] = count
        if mode:
            data['mode'] = mode
        return self._post("/api/session/words", data)

    def submit_results(self, outcomes: list[dict], keystrokes: list[dict],
                       score: dict | None) -> dict:
        """Submit word outcomes, keystrokes and the session score."""
        return self._post("/api/session/results", {
            'outcomes': outcomes,
            'keystrokes': keystrokes,
            'score': score
        })
