#!/usr/bin/env python3
"""
blinkit_agent/scripts/run_blinkit_shell.py

Interactive shell for Blinkit grocery automation.

Usage:
    blinkit-shell
    blinkit-shell --headed --debug
    blinkit-shell --data-dir ~/.blinkit-test --log-level DEBUG
"""

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from blinkit_agent.config import Config, load_settings
from blinkit_agent.context import AppContext
from blinkit_agent.exceptions import BlinkitError
from blinkit_agent.services import (
    AuthService,
    CartService,
    CheckoutService,
    LocationService,
    PaymentService,
    ProductService,
    QuickCheckoutService,
)
from blinkit_agent.utils.logger import get_logger, set_level
from blinkit_agent.utils.terminal_utils import (
    SlashCommandCompleter,
    SlashCommandLexer,
    print_error,
    print_products,
    print_result,
)

logger = get_logger(name=__name__)
console = Console()

SLASH_COMMANDS = [
    ("/status", "Check login status"),
    ("/login", "Send an OTP: /login <phone>"),
    ("/otp", "Complete login: /otp <code>"),
    ("/logout", "Clear the session and stop the browser"),
    ("/search", "Search products: /search <query>"),
    ("/details", "Product details: /details <product_id>"),
    ("/categories", "List categories"),
    ("/category", "Browse a category: /category <category_id>"),
    ("/cart", "Show the cart"),
    ("/add", "Add to cart: /add <product_id> [quantity]"),
    ("/remove", "Remove from cart: /remove <product_id> [quantity]"),
    ("/update", "Set quantity: /update <product_id> <quantity>"),
    ("/clear", "Empty the cart"),
    ("/location", "Set delivery location: /location <address>"),
    ("/addresses", "List saved addresses"),
    ("/address", "Select a saved address: /address <index>"),
    ("/checkout", "Proceed to checkout"),
    ("/upi", "List saved UPI ids"),
    ("/select-upi", "Select a UPI id: /select-upi <vpa>"),
    ("/pay", "Press Pay Now"),
    ("/quick", "Cart to payment in one step: /quick [vpa]"),
    ("/orders", "Order history: /orders [limit]"),
    ("/track", "Track an order: /track [order_id]"),
    ("/help", "Show help"),
    ("/quit", "Exit"),
]


class BlinkitShell:
    """Slash-command loop over the workflow services."""

    def __init__(self, context: AppContext) -> None:
        self.context = context
        self.auth = AuthService(context)
        self.products = ProductService(context)
        self.cart = CartService(context)
        self.location = LocationService(context)
        self.checkout = CheckoutService(context)
        self.payment = PaymentService(context)
        self.quick = QuickCheckoutService(context)
        self._history = InMemoryHistory()

        self._handlers: dict[str, Callable[[list[str]], None]] = {
            "/status": lambda args: print_result("Login status", self.auth.check_login_status(), console),
            "/login": self._login,
            "/otp": lambda args: print_result("Login", self.auth.enter_otp(self._required(args, "code")), console),
            "/logout": lambda args: print_result("Logout", self.auth.logout(), console),
            "/search": self._search,
            "/details": lambda args: print_result("Product", self.products.get_details(self._required(args, "product_id")), console),
            "/categories": lambda args: print_result("Categories", self.products.browse_categories(), console),
            "/category": lambda args: print_products(self.products.browse_category(self._required(args, "category_id")), console),
            "/cart": lambda args: print_result("Cart", self.cart.get_cart(), console),
            "/add": lambda args: print_result("Added", self.cart.add_to_cart(self._required(args, "product_id"), self._int(args, 1, 1)), console),
            "/remove": lambda args: print_result("Removed", self.cart.remove_from_cart(self._required(args, "product_id"), self._int(args, 1, 1)), console),
            "/update": lambda args: print_result("Cart", self.cart.update_item(self._required(args, "product_id"), self._int(args, 1, None)), console),
            "/clear": lambda args: print_result("Cart cleared", self.cart.clear_cart(), console),
            "/location": lambda args: print_result("Location", self.location.set_location(" ".join(args)), console),
            "/addresses": lambda args: print_result("Addresses", self.location.get_saved_addresses(), console),
            "/address": lambda args: print_result("Address", self.location.select_address(self._int(args, 0, None)), console),
            "/checkout": lambda args: print_result("Checkout", self.checkout.checkout(), console),
            "/upi": lambda args: print_result("UPI ids", self.payment.get_upi_ids(), console),
            "/select-upi": lambda args: print_result("UPI", {"selected": self.payment.select_upi_id(self._required(args, "vpa"))}, console),
            "/pay": self._pay,
            "/quick": lambda args: print_result("Quick checkout", self.quick.quick_checkout(args[0] if args else None), console),
            "/orders": lambda args: print_result("Orders", self.checkout.get_order_history(self._int(args, 0, 5)), console),
            "/track": lambda args: print_result("Tracking", self.checkout.track_order(args[0] if args else None), console),
        }

    @staticmethod
    def _required(args: list[str], name: str) -> str:
        if not args:
            raise ValueError(f"Missing argument: <{name}>")
        return args[0]

    @staticmethod
    def _int(args: list[str], position: int, default: int | None) -> int:
        if len(args) <= position:
            if default is None:
                raise ValueError("Missing numeric argument")
            return default
        try:
            return int(args[position])
        except ValueError as e:
            raise ValueError(f"Not a number: {args[position]}") from e

    def _login(self, args: list[str]) -> None:
        print_result("Login", self.auth.login(self._required(args, "phone")), console)

    def _search(self, args: list[str]) -> None:
        query = " ".join(args)
        if not query:
            raise ValueError("Missing argument: <query>")
        result = self.products.search(query)
        if result.items:
            print_products(result.items, console)
        elif result.no_results:
            console.print(f"[yellow]No results for '{query}'.[/yellow]\n")
        else:
            console.print(f"[yellow]Could not read results for '{query}'. Try again.[/yellow]\n")

    def _pay(self, args: list[str]) -> None:
        answer = pt_prompt(HTML("<b><ansiyellow>Pay now? This starts a real payment (y/n): </ansiyellow></b>"))
        if answer.strip().lower() != "y":
            console.print("[dim]Payment not started.[/dim]\n")
            return
        console.print(f"[bold green]{self.payment.pay_now()}[/bold green]\n")

    def print_welcome(self) -> None:
        config_table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
        config_table.add_column("Label", style="dim")
        config_table.add_column("Value", style="white")
        config_table.add_row("Data dir", str(self.context.data_dir))
        config_table.add_row("Headless", str(self.context.settings.headless))
        config_table.add_row("Warn at", f"₹{self.context.settings.warn_threshold:g}")
        config_table.add_row("Block at", f"₹{self.context.settings.max_order_amount:g}")
        console.print(Panel(
            config_table,
            title="[bold green]Blinkit Shell[/bold green]",
            subtitle="[dim]Type /help for commands[/dim]",
            border_style="green",
            box=box.ROUNDED,
        ))
        console.print()

    def _show_help(self) -> None:
        table = Table(box=box.SIMPLE, show_header=False)
        table.add_column("Command", style="green")
        table.add_column("Description")
        for cmd, desc in SLASH_COMMANDS:
            table.add_row(cmd, desc)
        console.print(table)

    def run(self) -> None:
        while True:
            try:
                user_input = pt_prompt(
                    HTML("<b><ansigreen>blinkit&gt;</ansigreen></b> "),
                    completer=SlashCommandCompleter(SLASH_COMMANDS),
                    lexer=SlashCommandLexer(),
                    complete_while_typing=True,
                    history=self._history,
                ).strip()
                if not user_input:
                    continue

                cmd, *args = user_input.split()
                cmd = cmd.lower()
                if cmd in ("/quit", "/exit", "/q"):
                    console.print("\n[bold green]Goodbye![/bold green]\n")
                    break
                if cmd in ("/help", "/h", "/?"):
                    self._show_help()
                    continue

                handler = self._handlers.get(cmd)
                if handler is None:
                    console.print(f"\n[bold red]Error:[/bold red] [red]Command does not exist: {cmd}[/red]")
                    console.print("[dim]Type /help to see available commands[/dim]\n")
                    continue
                handler(args)

            except BlinkitError as e:
                print_error(e.message, e.next_action, console)
            except ValueError as e:
                print_error(str(e), console=console)
            except KeyboardInterrupt:
                console.print("\n[yellow]Interrupted. Type /quit to exit.[/yellow]\n")
            except EOFError:
                console.print("\n[bold green]Goodbye![/bold green]\n")
                break


def main() -> None:
    """Run the Blinkit shell interactively."""
    parser = argparse.ArgumentParser(description="Blinkit Shell - grocery ordering from the terminal")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help=f"Directory for session, browser state and config.json (default: {Config.DATA_DIR})",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--debug", action="store_true", help="Outline matched elements and pause at each step")
    parser.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    args = parser.parse_args()

    if args.log_level:
        set_level(logging.getLevelNamesMapping().get(args.log_level.upper(), logging.INFO))

    data_dir = Path(args.data_dir).expanduser() if args.data_dir else Config.DATA_DIR
    try:
        settings = load_settings(data_dir)
    except BlinkitError as e:
        print_error(e.message, e.next_action, console)
        raise SystemExit(1)
    overrides: dict[str, bool] = {}
    if args.headed:
        overrides["headless"] = False
    if args.debug:
        overrides["debug"] = True
    settings = settings.model_copy(update=overrides)

    context = AppContext(data_dir=data_dir, settings=settings)
    shell = BlinkitShell(context)
    shell.print_welcome()
    try:
        shell.run()
    finally:
        context.close()


if __name__ == "__main__":
    main()
