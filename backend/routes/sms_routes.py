# backend/routes/sms_routes.py

from flask import Blueprint, request, jsonify, current_app

from utils.auth import token_required, teacher_required
from utils.messaging import (
    format_phone_number, extract_credentials, sms_credentials_message,
    whatsapp_credentials_message, sms_url, whatsapp_url,
)
from utils.payload import get_text

sms = Blueprint("sms", __name__)


# =====================================================
# BROWSER SMS LINK
# =====================================================
@sms.post("/send")
@token_required
def send_sms():
    data = request.get_json(silent=True) or {}
    try:
        to = get_text(data, "to")
        message = get_text(data, "message")
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    if not to or not message:
        return jsonify({
            "success": False,
            "error": "Phone number and message are required",
        }), 400

    cfg = current_app.config
    phone = format_phone_number(to, cfg["DEFAULT_COUNTRY_CODE"])
    creds = extract_credentials(message)
    body = sms_credentials_message(creds["email"], creds["password"], cfg["FRONTEND_URL"])

    return jsonify({
        "success": True,
        "message": "Browser SMS ready to send",
        "sms_url": sms_url(phone, body),
        "phone": phone,
        "provider": "Browser SMS",
        "instruction": "Click the SMS button to open messaging app with pre-filled credentials",
    }), 200


# =====================================================
# WHATSAPP LINK (TEACHER)
# =====================================================
@sms.post("/whatsapp")
@teacher_required
def send_whatsapp():
    data = request.get_json(silent=True) or {}
    try:
        to = get_text(data, "to")
        password = get_text(data, "password")
        name = get_text(data, "name")
        login = get_text(data, "login")
        role = get_text(data, "role") or "student"
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    if not to:
        return jsonify({"success": False, "error": "No phone number available for this user"}), 400
    if not password:
        return jsonify({"success": False, "error": "Please generate a password first"}), 400

    cfg = current_app.config
    phone = format_phone_number(to, cfg["DEFAULT_COUNTRY_CODE"])
    body = whatsapp_credentials_message(name, login, password, role, cfg["FRONTEND_URL"])

    return jsonify({
        "success": True,
        "message": "WhatsApp link ready",
        "whatsapp_url": whatsapp_url(phone, body),
        "phone": phone,
    }), 200


@sms.get("/balance")
@token_required
def sms_balance():
    return jsonify({
        "success": True,
        "balance": "Browser SMS - Always Available",
        "message": "Browser SMS is free and always available",
    }), 200
