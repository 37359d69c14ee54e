"""Stand-ins for the remote availability service used by the tests."""

import asyncio
import json

import httpx

from signup_form.models import Available


class ControlledCheck:
    """Stand-in for the remote check whose answers the test hands out.

    With ``answers`` given, every call returns immediately; otherwise each call
    waits until the test calls ``resolve``.
    """

    def __init__(self, answers=None):
        self.answers = answers
        self.calls = []
        self._futures = {}

    async def __call__(self, username):
        self.calls.append(username)
        if self.answers is not None:
            answer = self.answers.get(username, Available(is_available=True))
            if isinstance(answer, Exception):
                raise answer
            return answer
        future = asyncio.get_running_loop().create_future()
        self._futures[username] = future
        return await future

    async def wait_for_call(self, username, timeout=1.0):
        async def _poll():
            while username not in self._futures:
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_poll(), timeout)

    def resolve(self, username, outcome):
        future = self._futures[username]
        if not future.done():
            future.set_result(outcome)


def json_response(status_code, body, headers=None):
    return httpx.Response(status_code, content=json.dumps(body).encode(), headers=headers)
