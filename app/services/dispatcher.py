"""
Renders verification emails and hands them to the configured provider.
"""

from __future__ import annotations

from app.services.email import NotificationProvider


def _build_text_body(code: str, ttl_minutes: int, brand: str) -> str:
    return (
        f"Your {brand} verification code is {code}.\n\n"
        f"It expires in {ttl_minutes} minutes. "
        "If you did not request this code, you can ignore this email."
    )


def _build_html_body(code: str, ttl_minutes: int, brand: str) -> str:
    return f"""
    <html>
    <body style="font-family:sans-serif;color:#333">
      <h2>{brand} verification</h2>
      <p>Use the code below to verify your email address:</p>
      <p style="font-size:28px;font-weight:bold;letter-spacing:6px">{code}</p>
      <p>This code expires in {ttl_minutes} minutes.</p>
      <p style="margin-top:1em;font-size:0.9em;color:#888">
        If you did not request this code, you can safely ignore this email.
      </p>
    </body>
    </html>
    """


class NotificationDispatcher:
    def __init__(self, provider: NotificationProvider, *, brand: str = "LegalTenderPay") -> None:
        self._provider = provider
        self._brand = brand

    @property
    def provider_name(self) -> str:
        return self._provider.name

    async def send_code(self, email: str, code: str, ttl_minutes: int) -> None:
        """Deliver *code* to *email*; provider errors propagate unchanged."""
        subject = f"Your {self._brand} verification code"
        await self._provider.send(
            email,
            subject,
            _build_text_body(code, ttl_minutes, self._brand),
            _build_html_body(code, ttl_minutes, self._brand),
        )

    async def close(self) -> None:
        await self._provider.close()
