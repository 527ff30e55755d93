# connection_bot/core/bots/connection_report/texts.py
"""
User-facing texts for the connection report bot.

The conversation runs in Russian (technicians' language); the generated
report itself is Hebrew and lives in ``report.py``.
"""
from __future__ import annotations


TEXTS: dict[str, str] = {
    # Questions
    "q_acc_number": "Введите номер ACC (только 5 цифр):",
    "q_order_number": "Введите номер заказа (только цифры и символ +):",
    "q_client_name": "Введите имя клиента:",
    "q_address": "Введите адрес (улица дом город):",
    "q_ports": "Введите номера портов:",
    "q_pop": "Введите ПОП:",
    "q_panel_type": "Панель у клиента была или поставил новую?",
    "q_panel_ports": "Введите порты на панели клиента:",
    "q_distance": "Введите расстояние в метрах:",

    # Choice labels
    "choice_panel_existing": "Была",
    "choice_panel_new": "Поставил новую",

    # Validation errors
    "err_acc_number": "Номер ACC должен содержать ровно 5 цифр.",
    "err_order_number": "Номер заказа может содержать только цифры и символ +.",
    "err_address_script": "Адрес должен быть написан на иврите.",
    "err_address_not_found": "Адрес не найден.",
    "err_geocoding_unavailable": "Ошибка подключения к Google API.",
    "err_generic": "Ошибка! Попробуйте снова.",

    # Address suggestions
    "q_address_suggestions": "Мы не смогли найти точный адрес. Возможно, вы имели в виду:",

    # Session hints
    "hint_send_start": "Чтобы начать новый отчёт, отправьте /start.",
    "info_already_done": "Отчёт уже сформирован. Чтобы начать новый, отправьте /start.",
}


def get_text(key: str) -> str:
    """
    Get a text string by key.

    Returns:
        The text, or *key* itself if no text exists.
    """
    return TEXTS.get(key, key)
