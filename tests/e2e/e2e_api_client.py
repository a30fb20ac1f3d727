import requests


class E2EAPIClient:
    """Wrapper for making HTTP requests to the deployed image API"""

    def __init__(self, endpoint, headers):
        self.endpoint = endpoint
        self.headers = headers
        self.session = requests.Session()

    def _headers(self, headers=None):
        h = self.headers.copy()
        if headers:
            h.update(headers)
        return h

    def upload(self, file_data, *, filename="e2e.png", content_type="image/png", fields=None):
        """Multipart upload of one file"""
        url = f"{self.endpoint}/api/v1/images/upload"
        files = {"file": (filename, file_data, content_type)}
        return self.session.post(url, files=files, data=fields or {}, headers=self._headers(), timeout=30)

    def get(self, path, params=None, headers=None):
        url = f"{self.endpoint}{path}"
        return self.session.get(url, params=params, headers=self._headers(headers), timeout=30)

    def put(self, path, data, headers=None):
        url = f"{self.endpoint}{path}"
        return self.session.put(url, json=data, headers=self._headers(headers), timeout=30)

    def post(self, path, data, headers=None):
        url = f"{self.endpoint}{path}"
        return self.session.post(url, json=data, headers=self._headers(headers), timeout=30)

    def delete(self, path, headers=None):
        url = f"{self.endpoint}{path}"
        return self.session.delete(url, headers=self._headers(headers), timeout=30)
