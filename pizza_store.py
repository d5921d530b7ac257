#!/usr/bin/env python3.13

# menu-driven client for the pizza ordering database
# --sql is used for syntax highlighting inline sql queries

import sqlite3
import signal
import sys
import atexit
import logging
import functools
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

# fix windows terminal misinterpreting ansi escape sequences
enable_windows_ansi_interpretation()

log = logging.getLogger("pizza_store")

# constants
RECENT_ORDER_LIMIT = 5
DONE_TOKEN = "done"
ORDER_ID_SEQUENCE = "FoodOrder"
# the observed entry point always connects with an empty password
DEFAULT_DB_PASSWORD = ""
USAGE = "usage: pizza-store <dbname> <port> <user>"
# largest value sqlite can bind as an INTEGER
SQLITE_MAX_INT = 2**63 - 1
MAX_ITEM_QUANTITY = 100
MAX_PRICE = 10_000.00

SEED_STORES = [
    (1, "3900 Main St", "Riverside", "CA", "yes", 4.6),
    (2, "1201 University Ave", "Riverside", "CA", "yes", 4.2),
    (3, "88 Orange Grove Blvd", "Pasadena", "CA", "no", 3.9),
]

SEED_ITEMS = [
    ("Cheese Pizza", "dough, tomato sauce, mozzarella", "entree", 9.99, "the classic"),
    ("Pepperoni Pizza", "dough, tomato sauce, mozzarella, pepperoni", "entree", 11.99, "crispy cupped pepperoni"),
    ("Veggie Pizza", "dough, tomato sauce, mozzarella, peppers, onions, olives", "entree", 10.99, "garden fresh"),
    ("Hawaiian Pizza", "dough, tomato sauce, mozzarella, ham, pineapple", "entree", 12.49, "controversial but popular"),
    ("Garlic Knots", "dough, garlic butter, parsley", "sides", 4.99, "six per order"),
    ("Caesar Salad", "romaine, parmesan, croutons, caesar dressing", "sides", 6.49, "house dressing"),
    ("Soda", "carbonated water, syrup", "drinks", 1.99, "20oz fountain drink"),
    ("Lemonade", "lemon, sugar, water", "drinks", 2.49, "fresh squeezed"),
]

# seeded so that a manager exists to promote everyone else
SEED_MANAGER = ("admin", "admin", "000-000-0000", "Manager", None)

# editable columns; sql identifiers are only ever taken from these keys
USER_FIELDS = {
    "favoriteItems": "favorite item",
    "phoneNum": "phone number",
    "password": "password",
}
ITEM_FIELDS = {
    "price": "price",
    "typeOfItem": "type",
    "ingredients": "ingredients",
    "description": "description",
}

# helpers
def safe_int(value: str, minimum: int | None = None, maximum: int = SQLITE_MAX_INT):
    """return int value or none if invalid / outside [minimum, maximum]"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        if abs(v) > maximum:
            return None
        return v
    except ValueError:
        return None

def safe_float(value: str, minimum: float | None = None, maximum: float | None = None):
    """return finite float value or none if invalid / outside [minimum, maximum]"""
    try:
        v = float(value)
        if not math.isfinite(v):
            return None
        if minimum is not None and v < minimum:
            return None
        if maximum is not None and v > maximum:
            return None
        return v
    except ValueError:
        return None

def color_money(amount) -> str:
    """format amount as green money string"""
    return colored(f"${float(amount):.2f}", "green")

def parse_boolean_input(prompt: str, handle_invalid: bool = False) -> bool:
    """parse y/n style input; optionally warn on invalid"""
    p = prompt.lower().strip()
    if p in ("y", "yes"):
        return True
    if p in ("n", "no"):
        return False
    if handle_invalid:
        cprint("invalid input, please try again.", "red")
    return False

def read_choice() -> int:
    """read a menu number, re-prompting until one parses"""
    while True:
        choice = safe_int(input(colored("please make your choice: ", "blue")).strip())
        if choice is not None:
            return choice
        cprint("your input is invalid!", "red")

def prompt_int(prompt: str, minimum: int | None = None, maximum: int = SQLITE_MAX_INT) -> int:
    """read an integer, re-prompting on malformed or out-of-range input"""
    while True:
        value = safe_int(input(colored(prompt, "magenta")).strip(), minimum, maximum)
        if value is not None:
            return value
        hint = f" (>= {minimum})" if minimum is not None else ""
        if maximum < SQLITE_MAX_INT:
            hint += f" (<= {maximum})"
        cprint(f"please enter a whole number{hint}", "red")

def prompt_float(prompt: str, minimum: float | None = None, maximum: float | None = None) -> float:
    """read a finite decimal number, re-prompting on malformed or out-of-range input"""
    while True:
        value = safe_float(input(colored(prompt, "magenta")).strip(), minimum, maximum)
        if value is not None:
            return value
        hint = f" (>= {minimum})" if minimum is not None else ""
        if maximum is not None:
            hint += f" (<= {maximum})"
        cprint(f"please enter a number{hint}", "red")

def database_action(fn: Callable) -> Callable:
    """report database errors at the handler boundary; the session keeps running"""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (sqlite3.Error, OverflowError) as e:
            log.warning("%s failed: %s", fn.__name__, e)
            cprint(f"database error: {e}", "red")
            return None
    return wrapper

def database_path(dbname: str) -> str:
    """map a database name onto the sqlite file that backs it"""
    if dbname == ":memory:" or Path(dbname).suffix:
        return dbname
    return f"{dbname}.db"

def _as_text(value) -> str | None:
    return None if value is None else str(value)

# database layer
class DatabaseManager:
    """single sqlite connection plus the four query primitives (all parameterized)"""
    def __init__(self, dbname: str, port: str | None = None, user: str | None = None,
                 password: str = DEFAULT_DB_PASSWORD):
        self.path = database_path(dbname)
        self.port = port
        self.user = user
        # sqlite has no server: port, user and password are accepted but unused
        log.info("connecting to %s (port=%s, user=%s, password %s)",
                 self.path, port, user, "set" if password else "empty")
        self.conn = sqlite3.connect(self.path)
        self.conn.autocommit = True
        self.conn.execute("--sql\nPRAGMA foreign_keys=ON;")
        self._create_schema()
        self._seed()

    def _create_schema(self):
        """create tables if missing"""
        self.conn.executescript(
            """--sql
            CREATE TABLE IF NOT EXISTS Users (
                login TEXT PRIMARY KEY,
                password TEXT NOT NULL, -- plaintext, compared by the database
                phoneNum TEXT,
                role TEXT NOT NULL DEFAULT 'Customer',
                favoriteItems TEXT
            );
            CREATE TABLE IF NOT EXISTS Items (
                itemName TEXT PRIMARY KEY COLLATE NOCASE,
                ingredients TEXT,
                typeOfItem TEXT,
                price REAL NOT NULL CHECK (price >= 0),
                description TEXT
            );
            CREATE TABLE IF NOT EXISTS Store (
                storeID INTEGER PRIMARY KEY,
                address TEXT,
                city TEXT,
                state TEXT,
                isOpen TEXT,
                reviewScore REAL
            );
            CREATE TABLE IF NOT EXISTS FoodOrder (
                orderID INTEGER PRIMARY KEY AUTOINCREMENT,
                login TEXT NOT NULL REFERENCES Users(login),
                storeID INTEGER NOT NULL REFERENCES Store(storeID),
                totalPrice REAL NOT NULL,
                orderTimestamp TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                orderStatus TEXT NOT NULL DEFAULT 'Order Received'
            );
            CREATE TABLE IF NOT EXISTS ItemsInOrder (
                orderID INTEGER NOT NULL REFERENCES FoodOrder(orderID),
                itemName TEXT NOT NULL REFERENCES Items(itemName),
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                PRIMARY KEY (orderID, itemName)
            );
            """
        )

    def _seed(self):
        """seed stores, menu and the default manager once"""
        self.conn.executemany(
            "INSERT OR IGNORE INTO Store(storeID, address, city, state, isOpen, reviewScore) VALUES(?,?,?,?,?,?);",
            SEED_STORES
        )
        self.conn.executemany(
            "INSERT OR IGNORE INTO Items(itemName, ingredients, typeOfItem, price, description) VALUES(?,?,?,?,?);",
            SEED_ITEMS
        )
        self.conn.execute(
            "INSERT OR IGNORE INTO Users(login, password, phoneNum, role, favoriteItems) VALUES(?,?,?,?,?);",
            SEED_MANAGER
        )

    def execute_update(self, sql: str, params: Sequence = ()) -> int:
        """run a mutating statement and return the affected row count; sqlite errors propagate"""
        log.debug("update: %s %r", sql.strip(), params)
        return self.conn.execute(sql, params).rowcount

    def execute_query_and_print_result(self, sql: str, params: Sequence = ()) -> int:
        """run a query, print a tab separated header + rows, return the row count"""
        log.debug("query: %s %r", sql.strip(), params)
        cur = self.conn.execute(sql, params)
        rows = cur.fetchall()
        if rows:
            cprint("\t".join(col[0] for col in cur.description), None, attrs=["bold"])
        for row in rows:
            print("\t".join("" if v is None else str(v) for v in row))
        return len(rows)

    def execute_query_and_return_result(self, sql: str, params: Sequence = ()) -> list[list[str | None]]:
        """run a query and return its rows as lists of text values, in database order"""
        log.debug("query: %s %r", sql.strip(), params)
        rows = self.conn.execute(sql, params).fetchall()
        return [[_as_text(v) for v in row] for row in rows]

    def execute_query(self, sql: str, params: Sequence = ()) -> int:
        """run a query and return only the number of rows"""
        log.debug("count: %s %r", sql.strip(), params)
        return len(self.conn.execute(sql, params).fetchall())

    def get_current_sequence_value(self, name: str) -> int:
        """current value of an autoincrement counter, or -1 when there is none"""
        try:
            row = self.conn.execute(
                "SELECT seq FROM sqlite_sequence WHERE name=?;", (name,)
            ).fetchone()
        except sqlite3.OperationalError as e:
            # sqlite_sequence only exists once an AUTOINCREMENT table does
            log.debug("no sequence %s: %s", name, e)
            return -1
        return row[0] if row else -1

    @contextmanager
    def transaction(self):
        """group statements into one unit; any exception rolls the whole unit back"""
        self.conn.execute("BEGIN;")
        try:
            yield self
        except BaseException:
            self.conn.execute("ROLLBACK;")
            raise
        self.conn.execute("COMMIT;")

    def close(self):
        self.conn.close()

# roles / authorization
class Role(Enum):
    """user roles, stored capitalized but compared case-insensitively"""
    CUSTOMER = "customer"
    DRIVER = "driver"
    MANAGER = "manager"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """return the role for a stored / typed value, or none if unrecognized"""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return self.value.capitalize()

class Action(Enum):
    """guarded actions; values read as the tail of a denial message"""
    VIEW_PROFILE = "view profiles"
    UPDATE_PROFILE = "update profiles"
    PLACE_ORDER = "place orders"
    VIEW_OWN_ORDERS = "view orders"
    VIEW_ALL_ORDERS = "view all orders"
    UPDATE_ORDER_STATUS = "update order status"
    UPDATE_MENU = "update the menu"
    UPDATE_USER = "update users"

ALL_ROLES = frozenset(Role)
STAFF = frozenset({Role.DRIVER, Role.MANAGER})
MANAGERS = frozenset({Role.MANAGER})

PERMISSIONS: dict[Action, frozenset[Role]] = {
    Action.VIEW_PROFILE: ALL_ROLES,
    Action.UPDATE_PROFILE: ALL_ROLES,
    Action.PLACE_ORDER: ALL_ROLES,
    Action.VIEW_OWN_ORDERS: ALL_ROLES,
    Action.VIEW_ALL_ORDERS: STAFF,
    Action.UPDATE_ORDER_STATUS: STAFF,
    Action.UPDATE_MENU: MANAGERS,
    Action.UPDATE_USER: MANAGERS,
}

def authorize(action: Action, role: Role | None) -> bool:
    """true if role may perform action"""
    return role is not None and role in PERMISSIONS[action]

@dataclass
class Session:
    """login of the authenticated user, passed explicitly to every handler"""
    login: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.login is not None

# accounts/auth
class AccountManager:
    """registration, login and per-action role checks (plaintext passwords, as stored)"""
    def __init__(self, db: DatabaseManager):
        self.db = db

    def current_role(self, session: Session) -> Role | None:
        """role of the session user, fetched fresh on every call"""
        if not session.authenticated:
            return None
        rows = self.db.execute_query_and_return_result(
            "SELECT role FROM Users WHERE login=?;",
            (session.login,)
        )
        return Role.parse(rows[0][0]) if rows else None

    def check_access(self, session: Session, action: Action) -> Role | None:
        """re-verify the caller's role; print a denial and return none if not allowed"""
        if not session.authenticated:
            cprint("please log in first", "red"); return None
        role = self.current_role(session)
        if role is None:
            cprint("error retrieving user role", "red"); return None
        if not authorize(action, role):
            allowed = " and ".join(sorted(f"{r.value}s" for r in PERMISSIONS[action]))
            cprint(f"permission denied. only {allowed} can {action.value}.", "red")
            return None
        return role

    def user_exists(self, login: str) -> bool:
        """check if login exists (exact, case-sensitive)"""
        return self.db.execute_query(
            "SELECT 1 FROM Users WHERE login=?;",
            (login,)
        ) > 0

    @database_action
    def create_user(self, login: str | None = None, password: str | None = None,
                    phone: str | None = None) -> bool:
        """register a new customer account"""
        if login is None:
            login = input(colored("enter login (username): ", "magenta")).strip()
        if password is None:
            password = input(colored("enter password: ", "magenta")).strip()
        if phone is None:
            phone = input(colored("enter phone number: ", "magenta")).strip()
        if not login or not password:
            cprint("login and password cannot be empty", "red"); return False
        if self.user_exists(login):
            cprint("username already exists. please choose a different one.", "red"); return False
        self.db.execute_update(
            "INSERT INTO Users(login, password, phoneNum, role, favoriteItems) VALUES(?,?,?,?,NULL);",
            (login, password, phone, Role.CUSTOMER.label)
        )
        log.info("registered user %s", login)
        cprint("user registered successfully!", "green")
        return True

    @database_action
    def log_in(self, session: Session, login: str | None = None,
               password: str | None = None) -> str | None:
        """check credentials and open the session; rejected while one is active"""
        if session.authenticated:
            cprint(f"already logged in as {session.login}", "yellow"); return None
        if login is None:
            login = input(colored("enter login: ", "magenta")).strip()
        if password is None:
            password = input(colored("enter password: ", "magenta")).strip()
        found = self.db.execute_query(
            "SELECT 1 FROM Users WHERE login=? AND password=?;",
            (login, password)
        )
        if not found:
            cprint("invalid login or password", "red"); return None
        session.login = login
        log.info("user %s logged in", login)
        cprint(f"welcome, {colored(login, 'yellow', attrs=['bold'])}!", "green")
        return login

    def log_out(self, session: Session):
        """close the session"""
        if not session.authenticated:
            cprint("no user logged in", "red"); return
        cprint(f"logging out {session.login}", "green")
        log.info("user %s logged out", session.login)
        session.login = None

    @database_action
    def view_profile(self, session: Session):
        if self.check_access(session, Action.VIEW_PROFILE) is None:
            return
        cprint("your profile information:", "green", attrs=["bold"])
        self.db.execute_query_and_print_result(
            "SELECT login, favoriteItems, phoneNum, role FROM Users WHERE login=?;",
            (session.login,)
        )

    @database_action
    def update_profile(self, session: Session):
        """let the session user change their own favorite item, phone or password"""
        if self.check_access(session, Action.UPDATE_PROFILE) is None:
            return
        login = session.login
        Menu("update profile options", [
            MenuOption(1, "change favorite item", functools.partial(self.update_user_field, login, "favoriteItems")),
            MenuOption(2, "change phone number", functools.partial(self.update_user_field, login, "phoneNum")),
            MenuOption(3, "change password", functools.partial(self.update_user_field, login, "password")),
            MenuOption(4, "go back", closes=True),
        ]).run()

    @database_action
    def update_user_field(self, login: str, column: str, value: str | None = None) -> bool:
        """set one whitelisted column of a user row"""
        if column not in USER_FIELDS:
            raise ValueError(f"unknown user field: {column}")
        name = USER_FIELDS[column]
        if value is None:
            value = input(colored(f"enter new {name}: ", "magenta")).strip()
        if not self.db.execute_update(
            f"UPDATE Users SET {column}=? WHERE login=?;",
            (value, login)
        ):
            cprint("user not found", "red"); return False
        cprint(f"{name} updated successfully!", "green")
        return True

# menu / stores
class MenuManager:
    """browse, filter and (for managers) maintain the item menu"""
    def __init__(self, db: DatabaseManager, account_manager: AccountManager):
        self.db = db
        self.account_manager = account_manager

    def _print_items(self, sql: str, params: Sequence = ()) -> int:
        count = self.db.execute_query_and_print_result(sql, params)
        if not count:
            cprint("no items found", "yellow")
        return count

    def view_menu(self):
        """menu browsing sub-menu"""
        Menu("menu browsing options", [
            MenuOption(1, "view all items", self.list_items),
            MenuOption(2, "filter by type", self.filter_by_type),
            MenuOption(3, "filter by price range", self.filter_by_price),
            MenuOption(4, "sort by price (low to high)", self.sort_by_price),
            MenuOption(5, "sort by price (high to low)", functools.partial(self.sort_by_price, descending=True)),
            MenuOption(6, "go back", closes=True),
        ]).run()

    @database_action
    def list_items(self) -> int:
        return self._print_items(
            "SELECT itemName, typeOfItem, price FROM Items ORDER BY typeOfItem, price;"
        )

    @database_action
    def filter_by_type(self, type_: str | None = None) -> int:
        if type_ is None:
            type_ = input(colored("enter type (e.g. drinks, sides, entree): ", "magenta")).strip()
        return self._print_items(
            "SELECT itemName, price FROM Items WHERE trim(typeOfItem)=? ORDER BY price;",
            (type_.strip(),)
        )

    @database_action
    def filter_by_price(self, low: float | None = None, high: float | None = None) -> int:
        """items priced within [low, high]"""
        if low is None:
            low = prompt_float("enter minimum price: ", minimum=0)
        if high is None:
            high = prompt_float("enter maximum price: ", minimum=0)
        if low > high:
            cprint("minimum price exceeds maximum price", "red"); return 0
        return self._print_items(
            "SELECT itemName, price FROM Items WHERE price BETWEEN ? AND ? ORDER BY price;",
            (low, high)
        )

    @database_action
    def sort_by_price(self, descending: bool = False) -> int:
        direction = "DESC" if descending else "ASC"
        return self._print_items(f"SELECT itemName, price FROM Items ORDER BY price {direction};")

    @database_action
    def view_stores(self) -> int:
        cprint("available stores:", "green", attrs=["bold"])
        return self.db.execute_query_and_print_result(
            "SELECT storeID, address, city, state, isOpen, reviewScore FROM Store ORDER BY storeID;"
        )

    def find_item(self, name: str) -> list[str | None] | None:
        """case-insensitive lookup: [itemName, typeOfItem, price, ingredients, description]"""
        rows = self.db.execute_query_and_return_result(
            "SELECT itemName, typeOfItem, price, ingredients, description FROM Items WHERE lower(itemName)=lower(?);",
            (name,)
        )
        return rows[0] if rows else None

    @database_action
    def update_menu(self, session: Session):
        """manager only: edit, delete or create an item"""
        if self.account_manager.check_access(session, Action.UPDATE_MENU) is None:
            return
        name = input(colored("enter the item name to update (or a new name to add it): ", "magenta")).strip()
        if not name:
            cprint("item name cannot be empty", "red"); return
        item = self.find_item(name)
        if item is None:
            ans = input(f"item not found. would you like to add {colored(name, 'yellow')}? (y/N): ")
            if parse_boolean_input(ans):
                self.add_item(name)
            else:
                cprint("update canceled", "yellow")
            return
        name = item[0]
        print(f"editing {colored(name, 'yellow', attrs=['bold'])} ({item[1]}, {color_money(item[2])})")
        Menu("update item options", [
            MenuOption(1, "update price", functools.partial(self.update_item_field, name, "price")),
            MenuOption(2, "update type", functools.partial(self.update_item_field, name, "typeOfItem")),
            MenuOption(3, "update ingredients", functools.partial(self.update_item_field, name, "ingredients")),
            MenuOption(4, "update description", functools.partial(self.update_item_field, name, "description")),
            MenuOption(5, "delete item", functools.partial(self.delete_item, name), closes=True),
            MenuOption(6, "go back", closes=True),
        ]).run()

    @database_action
    def add_item(self, name: str, type_: str | None = None, price: float | None = None,
                 ingredients: str | None = None, description: str | None = None) -> bool:
        """insert a new menu item"""
        if type_ is None:
            type_ = input(colored("enter type (e.g. drinks, sides, entree): ", "magenta")).strip()
        if price is None:
            price = prompt_float("enter price: ", minimum=0, maximum=MAX_PRICE)
        if ingredients is None:
            ingredients = input(colored("enter ingredients: ", "magenta")).strip()
        if description is None:
            description = input(colored("enter description: ", "magenta")).strip()
        price = safe_float(str(price), minimum=0, maximum=MAX_PRICE)
        if price is None:
            cprint(f"price must be between 0 and {MAX_PRICE:.2f}", "red"); return False
        self.db.execute_update(
            "INSERT INTO Items(itemName, ingredients, typeOfItem, price, description) VALUES(?,?,?,?,?);",
            (name, ingredients, type_, round(price, 2), description)
        )
        log.info("added menu item %s", name)
        cprint("new item added successfully!", "green")
        return True

    @database_action
    def update_item_field(self, name: str, column: str, value=None) -> bool:
        """set one whitelisted column of an item"""
        if column not in ITEM_FIELDS:
            raise ValueError(f"unknown item field: {column}")
        label = ITEM_FIELDS[column]
        if column == "price":
            if value is None:
                value = prompt_float("enter new price: ", minimum=0, maximum=MAX_PRICE)
            value = safe_float(str(value), minimum=0, maximum=MAX_PRICE)
            if value is None:
                cprint("invalid price", "red"); return False
            value = round(value, 2)
        elif value is None:
            value = input(colored(f"enter new {label}: ", "magenta")).strip()
        if not self.db.execute_update(
            f"UPDATE Items SET {column}=? WHERE lower(itemName)=lower(?);",
            (value, name)
        ):
            cprint("item not found", "red"); return False
        cprint(f"{label} updated successfully!", "green")
        return True

    @database_action
    def delete_item(self, name: str) -> bool:
        """delete an item unless some order still references it"""
        if self.find_item(name) is None:
            cprint("item not found", "red"); return False
        rows = self.db.execute_query_and_return_result(
            "SELECT COUNT(*) FROM ItemsInOrder WHERE lower(itemName)=lower(?);",
            (name,)
        )
        if int(rows[0][0]) > 0:
            cprint("cannot delete item. it is associated with existing orders.", "red"); return False
        self.db.execute_update("DELETE FROM Items WHERE lower(itemName)=lower(?);", (name,))
        log.info("deleted menu item %s", name)
        cprint("item successfully deleted from the menu.", "green")
        return True

# orders
class OrderStatus(Enum):
    """order statuses; any staff member may set any of them"""
    RECEIVED = "Order Received"
    PREPARING = "Preparing"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"

class ItemNotFoundError(LookupError):
    """an item left the menu while its order was being stored"""

@dataclass
class CartLine:
    item_name: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

@dataclass
class Cart:
    """line items collected while placing one order, keyed by lower-cased name"""
    lines: dict[str, CartLine] = field(default_factory=dict)

    def add(self, item_name: str, quantity: int, unit_price) -> CartLine:
        """add quantity of an item; repeated names accumulate"""
        key = item_name.lower()
        line = self.lines.get(key)
        if line is None:
            line = self.lines[key] = CartLine(item_name, quantity, Decimal(str(unit_price)))
        else:
            line.quantity += quantity
        return line

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines.values()), Decimal("0")).quantize(Decimal("0.01"))

    def __len__(self) -> int:
        return len(self.lines)

class OrderManager:
    """place orders and inspect / update them"""
    def __init__(self, db: DatabaseManager, account_manager: AccountManager):
        self.db = db
        self.account_manager = account_manager

    def lookup_price(self, item_name: str) -> str | None:
        """price of an item by case-insensitive name"""
        rows = self.db.execute_query_and_return_result(
            "SELECT price FROM Items WHERE lower(itemName)=lower(?);",
            (item_name,)
        )
        return rows[0][0] if rows else None

    def canonical_item_name(self, item_name: str) -> str | None:
        """stored spelling of an item name"""
        rows = self.db.execute_query_and_return_result(
            "SELECT itemName FROM Items WHERE lower(itemName)=lower(?);",
            (item_name,)
        )
        return rows[0][0] if rows else None

    def collect_cart(self) -> Cart:
        """prompt for items until the done token; unknown items are reported and skipped"""
        cart = Cart()
        while True:
            name = input(colored(f"enter item name (or type '{DONE_TOKEN}' to finish): ", "magenta")).strip()
            if name.lower() == DONE_TOKEN:
                return cart
            if not name:
                continue
            quantity = prompt_int("enter quantity: ", minimum=1, maximum=MAX_ITEM_QUANTITY)
            price = self.lookup_price(name)
            if price is None:
                cprint("invalid item name. please try again.", "red")
                continue
            line = cart.add(name, quantity, price)
            print(f"added {quantity} x {name} ({line.quantity} in order, running total {color_money(cart.total)})")

    @database_action
    def place_order(self, session: Session) -> int | None:
        """interactive order placement; returns the new order id"""
        if self.account_manager.check_access(session, Action.PLACE_ORDER) is None:
            return None
        cprint("available stores:", "green", attrs=["bold"])
        self.db.execute_query_and_print_result("SELECT storeID, address FROM Store ORDER BY storeID;")
        store_id = prompt_int("enter store id to place your order: ")
        cart = self.collect_cart()
        if not cart:
            cprint("order canceled. no items were added.", "yellow")
            return None
        try:
            order_id = self.submit_order(session, store_id, cart)
        except ItemNotFoundError as e:
            cprint(f"order canceled: '{e.args[0]}' is no longer on the menu", "red")
            return None
        cprint(f"order #{order_id} placed successfully! total price: {color_money(cart.total)}", "green")
        return order_id

    def submit_order(self, session: Session, store_id: int, cart: Cart) -> int:
        """store header + line items atomically and return the order id"""
        with self.db.transaction():
            self.db.execute_update(
                """--sql
                INSERT INTO FoodOrder(login, storeID, totalPrice, orderTimestamp, orderStatus)
                VALUES(?, ?, ?, CURRENT_TIMESTAMP, ?);
                """,
                (session.login, store_id, float(cart.total), OrderStatus.RECEIVED.value)
            )
            order_id = self.db.get_current_sequence_value(ORDER_ID_SEQUENCE)
            for line in cart.lines.values():
                item_name = self.canonical_item_name(line.item_name)
                if item_name is None:
                    raise ItemNotFoundError(line.item_name)
                self.db.execute_update(
                    """--sql
                    INSERT INTO ItemsInOrder(orderID, itemName, quantity) VALUES(?, ?, ?)
                    ON CONFLICT(orderID, itemName) DO UPDATE SET quantity = quantity + excluded.quantity;
                    """,
                    (order_id, item_name, line.quantity)
                )
        log.info("order %s placed by %s at store %s for %s", order_id, session.login, store_id, cart.total)
        return order_id

    def _show_orders(self, session: Session, limit: int | None = None) -> int | None:
        role = self.account_manager.check_access(session, Action.VIEW_OWN_ORDERS)
        if role is None:
            return None
        scope = f"{limit} most recent" if limit is not None else "full"
        if authorize(Action.VIEW_ALL_ORDERS, role):
            cprint(f"{scope} order history (all customers):", "green", attrs=["bold"])
            sql = "SELECT orderID, login, storeID, totalPrice, orderStatus FROM FoodOrder ORDER BY orderID DESC"
            params: tuple = ()
        else:
            cprint(f"your {scope} order history:", "green", attrs=["bold"])
            sql = "SELECT orderID, storeID, totalPrice, orderStatus FROM FoodOrder WHERE login=? ORDER BY orderID DESC"
            params = (session.login,)
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        count = self.db.execute_query_and_print_result(sql + ";", params)
        if not count:
            cprint("no orders found", "yellow")
        return count

    @database_action
    def view_all_orders(self, session: Session) -> int | None:
        return self._show_orders(session)

    @database_action
    def view_recent_orders(self, session: Session) -> int | None:
        return self._show_orders(session, limit=RECENT_ORDER_LIMIT)

    @database_action
    def view_order_info(self, session: Session, order_id: int | None = None) -> bool:
        """print one order and its line items; customers only see their own"""
        role = self.account_manager.check_access(session, Action.VIEW_OWN_ORDERS)
        if role is None:
            return False
        if order_id is None:
            order_id = prompt_int("enter the order id to view details: ", minimum=1)
        rows = self.db.execute_query_and_return_result(
            "SELECT orderID, login, orderTimestamp, totalPrice, orderStatus FROM FoodOrder WHERE orderID=?;",
            (order_id,)
        )
        if not rows:
            cprint("order not found", "red"); return False
        oid, owner, timestamp, total, status = rows[0]
        if not authorize(Action.VIEW_ALL_ORDERS, role) and owner != session.login:
            cprint("permission denied. you can only view your own orders.", "red"); return False
        cprint(f"order #{oid}:", "green", attrs=["bold"])
        print("\tcustomer:", owner)
        print("\ttimestamp:", timestamp)
        print("\ttotal price:", color_money(total))
        print("\tstatus:", status)
        items = self.db.execute_query_and_return_result(
            "SELECT itemName, quantity FROM ItemsInOrder WHERE orderID=? ORDER BY itemName;",
            (order_id,)
        )
        if not items:
            cprint("no items found for this order", "yellow")
            return True
        print(f"\n{'item name':<25} {'quantity':<10}")
        print("-" * 36)
        for item_name, quantity in items:
            print(f"{item_name:<25} {quantity:<10}")
        return True

    @database_action
    def update_order_status(self, session: Session, order_id: int | None = None,
                            status: OrderStatus | None = None) -> bool:
        """drivers and managers may move any order to any status"""
        if self.account_manager.check_access(session, Action.UPDATE_ORDER_STATUS) is None:
            return False
        if order_id is None:
            cprint("available orders:", "green", attrs=["bold"])
            self.db.execute_query_and_print_result(
                "SELECT orderID, login, storeID, totalPrice, orderStatus FROM FoodOrder ORDER BY orderID;"
            )
            order_id = prompt_int("enter the order id to update: ", minimum=1)
        if not self.db.execute_query("SELECT 1 FROM FoodOrder WHERE orderID=?;", (order_id,)):
            cprint("order not found", "red"); return False
        if status is None:
            statuses = list(OrderStatus)
            cprint("available status options:", None, attrs=["bold"])
            for i, s in enumerate(statuses, start=1):
                print(f"{colored(str(i), 'blue')}. {s.value}")
            choice = safe_int(input(colored("choose a new status: ", "magenta")).strip(), minimum=1)
            if choice is None or choice > len(statuses):
                cprint("invalid status choice", "red"); return False
            status = statuses[choice - 1]
        self.db.execute_update(
            "UPDATE FoodOrder SET orderStatus=? WHERE orderID=?;",
            (status.value, order_id)
        )
        log.info("order %s set to %s by %s", order_id, status.value, session.login)
        cprint(f"order #{order_id} status updated to {status.value}", "green")
        return True

# user maintenance
class UserManager:
    """manager-only edits to other users"""
    def __init__(self, db: DatabaseManager, account_manager: AccountManager):
        self.db = db
        self.account_manager = account_manager

    @database_action
    def update_user(self, session: Session):
        if self.account_manager.check_access(session, Action.UPDATE_USER) is None:
            return
        login = input(colored("enter the login of the user to update: ", "magenta")).strip()
        if not self.account_manager.user_exists(login):
            cprint("user not found", "red"); return
        update = self.account_manager.update_user_field
        Menu(f"update user options ({login})", [
            MenuOption(1, "change phone number", functools.partial(update, login, "phoneNum")),
            MenuOption(2, "change favorite item", functools.partial(update, login, "favoriteItems")),
            MenuOption(3, "change password", functools.partial(update, login, "password")),
            MenuOption(4, "change role", functools.partial(self.change_role, login)),
            MenuOption(5, "go back", closes=True),
        ]).run()

    @database_action
    def change_role(self, login: str, new_role: str | None = None) -> bool:
        """set a user's role; unrecognized roles never reach the database"""
        if new_role is None:
            new_role = input(colored("enter new role (customer/driver/manager): ", "magenta"))
        role = Role.parse(new_role)
        if role is None:
            cprint("invalid role. please enter 'customer', 'driver', or 'manager'.", "red")
            return False
        self.db.execute_update(
            "UPDATE Users SET role=? WHERE login=?;",
            (role.label, login)
        )
        log.info("role of %s set to %s", login, role.label)
        cprint(f"user role updated to {role.value}!", "green")
        return True

# menu infrastructure
class MenuOption:
    """bind a menu number to a handler"""
    def __init__(self, key: int, label: str, function: Callable | None = None, closes: bool = False):
        self.key = key
        self.label = label
        self.function = function
        self.closes = closes

class Menu:
    """numbered text menu; loops until a closing option is picked or input ends"""
    def __init__(self, title: str, options: list[MenuOption]):
        self.title = title
        self.options = options

    def render(self):
        cprint(f"\n{self.title.upper()}", None, attrs=["bold"])
        cprint("-" * len(self.title), None)
        for opt in self.options:
            print(f"{colored(str(opt.key), 'blue')}. {opt.label}")

    def run(self):
        while True:
            self.render()
            try:
                choice = read_choice()
                option = next((o for o in self.options if o.key == choice), None)
                if option is None:
                    cprint("unrecognized choice!", "red")
                    continue
                if option.function is not None:
                    option.function()
            except EOFError:
                print()
                return
            if option.closes:
                return

# application wiring
class Application:
    """build the managers around one connection and run the menus"""
    def __init__(self, db: DatabaseManager):
        self.db = db
        self.session = Session()
        self.account_manager = AccountManager(db)
        self.menu_manager = MenuManager(db, self.account_manager)
        self.order_manager = OrderManager(db, self.account_manager)
        self.user_manager = UserManager(db, self.account_manager)

    def main_menu(self) -> Menu:
        return Menu("main menu", [
            MenuOption(1, "create user", self.account_manager.create_user),
            MenuOption(2, "log in", self.log_in),
            MenuOption(9, "< exit", closes=True),
        ])

    def user_menu(self) -> Menu:
        s = self.session
        p = functools.partial
        return Menu(f"main menu ({s.login})", [
            MenuOption(1, "view profile", p(self.account_manager.view_profile, s)),
            MenuOption(2, "update profile", p(self.account_manager.update_profile, s)),
            MenuOption(3, "view menu", self.menu_manager.view_menu),
            MenuOption(4, "place order", p(self.order_manager.place_order, s)),
            MenuOption(5, "view full order id history", p(self.order_manager.view_all_orders, s)),
            MenuOption(6, f"view past {RECENT_ORDER_LIMIT} order ids", p(self.order_manager.view_recent_orders, s)),
            MenuOption(7, "view order information", p(self.order_manager.view_order_info, s)),
            MenuOption(8, "view stores", self.menu_manager.view_stores),
            MenuOption(9, "update order status " + colored("(drivers & managers)", "yellow"),
                       p(self.order_manager.update_order_status, s)),
            MenuOption(10, "update menu " + colored("(managers)", "yellow"), p(self.menu_manager.update_menu, s)),
            MenuOption(11, "update user " + colored("(managers)", "yellow"), p(self.user_manager.update_user, s)),
            MenuOption(20, "log out", p(self.account_manager.log_out, s), closes=True),
        ])

    def log_in(self):
        """log in, then stay in the user menu until logout"""
        if self.account_manager.log_in(self.session):
            self.user_menu().run()

    def run(self):
        cprint("""
welcome to pizza-store 🍕
order from your local stores, straight from the terminal
    """, "green", attrs=["bold"])
        self.main_menu().run()

# signal handler
class SignalHandler:
    """exit cleanly on ctrl+c"""
    @staticmethod
    def sigint(_, __):
        cprint("\nbye!", "yellow")
        sys.exit(0)

# entry point
def main(argv: list[str] | None = None) -> int:
    """entrypoint: pizza-store <dbname> <port> <user>"""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 3:
        print(USAGE, file=sys.stderr)
        return 1
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    signal.signal(signal.SIGINT, SignalHandler.sigint)
    dbname, port, user = args
    cprint(f"connecting to database {database_path(dbname)}...", "yellow")
    try:
        db = DatabaseManager(dbname, port, user, DEFAULT_DB_PASSWORD)
    except sqlite3.Error as e:
        log.error("unable to connect to %s: %s", dbname, e)
        cprint(f"error - unable to connect to database: {e}", "red", file=sys.stderr)
        return 1
    atexit.register(db.close)
    cprint("done", "green")
    Application(db).run()
    cprint("disconnecting from database... bye!", "green")
    return 0

if __name__ == "__main__":
    sys.exit(main())
