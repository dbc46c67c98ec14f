import smtplib
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from inzozi.core.config import settings

logger = logging.getLogger(__name__)

APP_NAME = "Inzozi Nziza Community Hub"


def _smtp_configured() -> bool:
    return all([settings.SMTP_HOST, settings.SMTP_USER, settings.SMTP_PASSWORD, settings.FROM_EMAIL])


def _send_email(to_email: str, subject: str, plain_text: str, html_text: str) -> None:
    """Low-level helper to send one email via SMTP."""
    if not _smtp_configured():
        logger.warning("SMTP not fully configured; skipping email to %s.", to_email)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.FROM_EMAIL
    msg["To"] = to_email
    if settings.REPLY_TO_EMAIL:
        msg["Reply-To"] = settings.REPLY_TO_EMAIL

    msg.attach(MIMEText(plain_text, "plain"))
    msg.attach(MIMEText(html_text, "html"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT or 587) as server:
        server.ehlo()
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.FROM_EMAIL, to_email, msg.as_string())


def _wrap_html(title: str, body: str) -> str:
    return f"""
    <html>
    <body style="font-family:Arial,sans-serif;color:#1e3a5f;background:#f0f4ff;padding:24px;">
      <div style="max-width:560px;margin:0 auto;background:#ffffff;border-radius:12px;
                  border:2px solid #bfdbfe;padding:32px;">
        <h2 style="color:#1d4ed8;margin-bottom:4px;">{title}</h2>
        <p style="font-size:13px;color:#64748b;margin-top:0;">{APP_NAME}</p>
        {body}
        <p style="font-size:12px;color:#94a3b8;margin-top:24px;">
          This is an automated notification from the {APP_NAME} system.
        </p>
      </div>
    </body>
    </html>
    """


def send_loan_decision_email(
    to_email: str,
    full_name: str,
    approved: bool,
    amount: float,
    installment_amount: Optional[float] = None,
    notes: Optional[str] = None,
) -> None:
    """Tell a member their loan application was approved or denied.

    Delivery failures are logged; the decision itself is already saved.
    """
    decision = "approved" if approved else "denied"
    subject = f"{APP_NAME} - Loan application {decision}"

    lines = [f"Hello {full_name},", "", f"Your loan application for {amount:,.0f} RWF has been {decision}."]
    if approved and installment_amount is not None:
        lines.append(f"Installment amount: {installment_amount:,.0f} RWF.")
    if notes:
        lines.append(f"Notes: {notes}")
    lines += ["", APP_NAME]
    plain_text = "\n".join(lines)

    body = "".join(f"<p>{line}</p>" for line in lines[:-2] if line)
    html_text = _wrap_html(f"Loan application {decision}", body)

    try:
        _send_email(to_email, subject, plain_text, html_text)
    except Exception:
        logger.exception("Failed to send loan decision email to %s", to_email)


def send_overdue_report(to_emails: List[str], defaulted_loans: List[dict]) -> None:
    """Send the list of newly defaulted loans to every admin.

    Each defaulted_loans dict: {"loan_id": str, "member_name": str, "loan_amount": float, "outstanding": float}
    """
    if not to_emails or not defaulted_loans:
        return

    subject = f"{APP_NAME} - Loans defaulted ({len(defaulted_loans)})"

    # ---- plain text --------------------------------------------------------
    lines = [f"{APP_NAME} - Overdue Loan Report", "", f"LOANS DEFAULTED ({len(defaulted_loans)}):"]
    for item in defaulted_loans:
        lines.append(
            f"  - {item['member_name']}: {item['loan_amount']:,.0f} RWF, "
            f"outstanding {item['outstanding']:,.0f} RWF"
        )
    lines += ["", "The members above have been deactivated until reviewed."]
    plain_text = "\n".join(lines)

    # ---- HTML --------------------------------------------------------------
    rows = "".join(
        f'<tr><td style="padding:6px 12px;border-bottom:1px solid #e2e8f0;">{item["member_name"]}</td>'
        f'<td style="padding:6px 12px;border-bottom:1px solid #e2e8f0;text-align:right;">{item["loan_amount"]:,.0f} RWF</td>'
        f'<td style="padding:6px 12px;border-bottom:1px solid #e2e8f0;text-align:right;">{item["outstanding"]:,.0f} RWF</td></tr>'
        for item in defaulted_loans
    )
    body = f"""
        <table style="width:100%;border-collapse:collapse;font-size:14px;">
          <tr style="background:#eff6ff;">
            <th style="padding:8px 12px;text-align:left;">Member</th>
            <th style="padding:8px 12px;text-align:right;">Loan Amount</th>
            <th style="padding:8px 12px;text-align:right;">Outstanding</th>
          </tr>
          {rows}
        </table>
        <p>The members above have been deactivated until reviewed.</p>"""
    html_text = _wrap_html("Overdue Loan Report", body)

    for email_addr in to_emails:
        try:
            _send_email(email_addr, subject, plain_text, html_text)
            logger.info("Overdue report email sent to %s", email_addr)
        except Exception:
            logger.exception("Failed to send overdue report to %s", email_addr)
