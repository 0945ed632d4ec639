# core/prompts.py

"""
Confirmation collaborators.

Anything callable as `confirm(title, text) -> bool` can stand in for the console prompt,
e.g. a dialog adapter in a GUI or a lambda in tests.
"""

from collections.abc import Callable

Confirm = Callable[[str, str], bool]


def prompt_user_input(prompt: str) -> str:
    return input(f"\n{prompt}\n  >> ").strip()


def console_confirm(title: str, text: str) -> bool:
    while True:
        choice = prompt_user_input(f"{title} {text} (y/n): ").lower()

        if choice == "y" or choice == "yes":
            return True

        elif choice == "n" or choice == "no":
            return False

        else:
            print("Invalid selection. Please try again.")


def always_confirm(title: str, text: str) -> bool:
    return True
