import json
import os
from typing import Optional

from chalice.test import Client

from app import app

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def local_client() -> Client:
    return Client(app, stage_name='test', project_dir=PROJECT_DIR)


def make_request(client: Client, endpoint: str = '/', method: str = 'GET',
                 query: Optional[str] = None, json_body=None, token=None):
    """Request through the local gateway, token is the user id in the test stage"""
    headers = {'Content-Type': 'application/json'}
    if token:
        headers['Authorization'] = token
    return client.http.request(
        method=method,
        path=f"{endpoint}?{query}" if query else f"{endpoint}",
        headers=headers,
        body=json.dumps(json_body).encode() if json_body is not None else b''
    )
