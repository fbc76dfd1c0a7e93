#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP).

Usage:
  python3 scripts/chat_local.py [business_id]

What it does:
- Opens a chat room with the given business (default: demo-plumbing)
- Sends your typed messages through the same ConversationTurnUseCase as the API
- Prints the assistant reply and, with /draft, the draft collected so far
- Lets you act as the business with /status to walk the appointment state machine
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from booking_assistant.application.exceptions import InvalidTransition, NotFound, PersistenceUncertain
from booking_assistant.domain.entities.appointment import SuggestedTime
from booking_assistant.wiring.dependencies import (
    get_chat_room_store,
    get_conversation_turn_use_case,
    get_status_transition_service,
)


def _print_header(chat_room_id: str, business_id: str) -> None:
    print("\nLocal Chat Harness")
    print("-" * 60)
    print(f"business_id: {business_id}")
    print(f"chat_room_id: {chat_room_id}")
    print("Type your message and press Enter.")
    print("Commands: /new, /draft, /history, /appointments, /status, /accept, /decline, /quit, /help")
    print("-" * 60)


def _print_help() -> None:
    print("Commands:")
    print("  /new -> open a new chat room with the same business")
    print("  /draft -> show the draft collected so far")
    print("  /history -> show last 10 messages")
    print("  /appointments -> list appointments booked in this chat room")
    print("  /status <appointment_id> <status> [YYYY-MM-DD HH:MM] -> act as the business")
    print("  /accept <appointment_id>, /decline <appointment_id> -> answer a reschedule proposal")
    print("  /quit -> exit")


def main() -> None:
    business_id = sys.argv[1] if len(sys.argv) > 1 else "demo-plumbing"
    store = get_chat_room_store()
    use_case = get_conversation_turn_use_case()
    transitions = get_status_transition_service()
    room = store.create_chat_room(business_id, user_id="local_user")
    _print_header(room.id, business_id)

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_text:
            continue

        parts = user_text.split()
        cmd = parts[0].lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            return
        if cmd == "/help":
            _print_help()
            continue
        if cmd == "/new":
            room = store.create_chat_room(business_id, user_id="local_user")
            print(f"New chat_room_id: {room.id}")
            continue
        if cmd == "/draft":
            print(json.dumps(store.get_draft(room.id).to_dict(), indent=2))
            continue
        if cmd == "/history":
            print("\n--- History (last 10) ---")
            for turn in store.get_recent_messages(room.id, limit=10):
                print(f"{turn.role}: {turn.content}")
            continue
        if cmd == "/appointments":
            for appointment in store.list_for_chat_room(room.id):
                print(json.dumps(appointment.to_dict(), indent=2))
            continue
        if cmd in ("/status", "/accept", "/decline"):
            try:
                if cmd == "/status" and len(parts) >= 3:
                    suggestion = SuggestedTime(date=parts[3], time=parts[4]) if len(parts) >= 5 else None
                    appointment = transitions.transition(room.id, parts[1], parts[2], suggestion)
                elif cmd == "/accept" and len(parts) == 2:
                    appointment = transitions.accept_reschedule(room.id, parts[1])
                elif cmd == "/decline" and len(parts) == 2:
                    appointment = transitions.decline_reschedule(room.id, parts[1])
                else:
                    _print_help()
                    continue
            except (InvalidTransition, NotFound, PersistenceUncertain) as e:
                print(f"ERROR: {e}")
                continue
            print(f"status: {appointment.status.value}")
            continue

        result = use_case.handle(room.id, user_text)

        print("\n--- Reply ---")
        print(result.reply_text)
        print(f"\n(next_step: {result.draft.next_step.value})")
        if result.appointment is not None:
            print(f"(booked appointment {result.appointment.id})")


if __name__ == "__main__":
    main()
