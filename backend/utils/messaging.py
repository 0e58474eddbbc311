# backend/utils/messaging.py
"""Credential messages and sms:/wa.me link builders.

Nothing is sent from the server. The client opens the returned link in the
phone's messaging app with the text pre-filled.
"""
import re
from urllib.parse import quote

# left unescaped in link text
URI_SAFE = "!~*'()"
DEFAULT_COUNTRY_CODE = "92"


def format_phone_number(phone, country_code=DEFAULT_COUNTRY_CODE):
    clean = re.sub(r"[\s\-+]", "", phone or "")
    if clean.startswith("0"):
        clean = country_code + clean[1:]
    elif not clean.startswith(country_code):
        clean = country_code + clean
    return clean


def extract_credentials(message):
    email_match = re.search(r"User ID: ([^\n]+)", message or "")
    password_match = re.search(r"Password: ([^\n]+)", message or "")
    return {
        "email": email_match.group(1).strip() if email_match else "N/A",
        "password": password_match.group(1).strip() if password_match else "N/A",
    }


def login_url(frontend_url):
    return f"{frontend_url.rstrip('/')}/auth/login"


def sms_credentials_message(login, password, frontend_url):
    return (
        "CyberArena Login Credentials:\n\n"
        f"📧 User ID: {login}\n"
        f"🔑 Password: {password}\n\n"
        f"🌐 Login: {login_url(frontend_url)}\n\n"
        "⚠️ Keep your credentials secure. Do not share with anyone."
    )


def whatsapp_credentials_message(name, login, password, role, frontend_url):
    return (
        "🎯 *CyberArena Login Credentials* 🎯\n\n"
        "👤 *User Details:*\n"
        f"• Name: {name}\n"
        f"• User ID: {login}\n"
        f"• Password: {password}\n"
        f"• Role: {role}\n\n"
        "🔐 *Login Instructions:*\n"
        f"1. Visit: {login_url(frontend_url)}\n"
        "2. Use your User ID and Password above\n"
        "3. Change your password after first login\n\n"
        "📱 *Need Help?*\n"
        "Contact your administrator for support.\n\n"
        "_Keep your credentials secure and don't share them with anyone._"
    )


def sms_url(phone, message):
    return f"sms:{phone}?body={quote(message, safe=URI_SAFE)}"


def whatsapp_url(phone, message):
    return f"https://wa.me/{phone}?text={quote(message, safe=URI_SAFE)}"
