from __future__ import annotations

import unittest

from pomolog.auth import get_url_params, require_user_id
from pomolog.errors import NotSignedInError


class TestAuthHelpers(unittest.TestCase):
    def test_reads_tokens_from_fragment(self) -> None:
        params = get_url_params("pomolog://login#access_token=token123&refresh_token=refresh456&expires_in=3600")

        self.assertEqual(params["access_token"], "token123")
        self.assertEqual(params["refresh_token"], "refresh456")

    def test_reads_code_from_query(self) -> None:
        params = get_url_params("pomolog://login?code=abc123&type=signup")

        self.assertEqual(params["code"], "abc123")
        self.assertEqual(params["type"], "signup")

    def test_fragment_overrides_query(self) -> None:
        params = get_url_params("https://example.com/cb?state=a&code=q#state=b")
        self.assertEqual(params, {"state": "b", "code": "q"})

    def test_require_user_id(self) -> None:
        self.assertEqual(require_user_id(" user-1 "), "user-1")
        for value in (None, "", "   "):
            with self.assertRaises(NotSignedInError):
                require_user_id(value)


if __name__ == "__main__":
    unittest.main()
