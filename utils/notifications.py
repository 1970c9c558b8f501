"""Patient-facing email content for booking events."""
from html import escape


def _signoff(practitioner: str) -> str:
    return f"<p>&mdash; {escape(practitioner)}</p>"


def confirmation_email(booking, practitioner: str):
    link = escape(booking.video_link or "")
    pending = ""
    if booking.status == "pending":
        pending = "<p>Your slot is reserved. Payment is still outstanding; we will send payment details separately.</p>"
    html = f"""
<p>Hi {escape(booking.name)},</p>
<p>Your booking is confirmed.</p>
<ul>
  <li>Date: {escape(booking.date)}</li>
  <li>Time: {escape(booking.time)}</li>
  <li>Type: {escape(booking.type_label or "Consult")}</li>
  <li>Video: <a href="{link}">{link}</a></li>
</ul>
{pending}
<p>Notes: {escape(booking.reason or "")}</p>
{_signoff(practitioner)}
"""
    text = (
        f"Hi {booking.name},\n\nYour booking is confirmed.\n"
        f"Date: {booking.date}\nTime: {booking.time}\n"
        f"Type: {booking.type_label or 'Consult'}\nVideo: {booking.video_link or ''}\n"
    )
    return "Your telehealth booking is confirmed", html, text


def update_email(booking, practitioner: str):
    html = f"""
<p>Hi {escape(booking.name or "")},</p>
<p>Your booking has been updated:</p>
<ul>
  <li>Date: {escape(booking.date)}</li>
  <li>Time: {escape(booking.time)}</li>
  <li>Type: {escape(booking.type_label or "Consult")}</li>
  <li>Status: {escape(booking.status)}</li>
</ul>
<p>If this time no longer works, please reply to adjust.</p>
{_signoff(practitioner)}
"""
    text = (
        f"Hi {booking.name or ''},\n\nYour booking has been updated.\n"
        f"Date: {booking.date}\nTime: {booking.time}\nStatus: {booking.status}\n"
    )
    return "Updated booking details", html, text


def completion_email(booking, practitioner: str):
    html = f"""
<p>Hi {escape(booking.name or "")},</p>
<p>Thank you for your consult today. I hope you had a good experience.</p>
<p>If you have any further questions or need follow-up care, please reply to this email and I will assist.</p>
{_signoff(practitioner)}
"""
    text = f"Hi {booking.name or ''},\n\nThank you for your consult today.\n"
    return "Thank you for your consult today", html, text
