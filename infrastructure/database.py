import datetime
import os
import sqlite3
from contextlib import contextmanager
from typing import Dict, List, Optional

from domain.bookkeeping import Transaction
from domain.document import Invoice, Offer
from domain.errors import NumberConflictError, RecordNotFoundError
from domain.line_item import BillingType, InvoiceLine, LineItem
from domain.money import to_decimal
from domain.project import Client, Project, TimeEntry
from domain.status import (ClientStatus, InvoiceStatus, OfferStatus, ProjectStatus,
                           TransactionType)
from infrastructure.persistence import PersistenceService


def _dec(value) -> Optional[str]:
    """Decimals are stored as TEXT to keep them exact."""
    return None if value is None else str(value)


def _date(value) -> Optional[datetime.date]:
    if not value:
        return None
    return datetime.date.fromisoformat(value[:10])


def _datetime(value) -> Optional[datetime.datetime]:
    if not value:
        return None
    return datetime.datetime.fromisoformat(value)


class Database:
    def __init__(self, db_path: str = None):
        if db_path is None:
            from infrastructure.configuration import ConfigurationService
            db_path = ConfigurationService.get_instance().get_database_path()
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        self.init_db()

    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self):
        """One connection, committed on success, rolled back on any exception."""
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _use(self, conn=None):
        # Join the caller's transaction when one is passed in
        if conn is not None:
            yield conn
        else:
            with self.transaction() as own:
                yield own

    def init_db(self):
        """Initialize the database schema."""
        with self.transaction() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS clients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    company TEXT DEFAULT '',
                    email TEXT DEFAULT '',
                    phone TEXT DEFAULT '',
                    address TEXT DEFAULT '',
                    notes TEXT DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'lead',
                    customer_number TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS projects (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    client_id INTEGER NOT NULL REFERENCES clients (id),
                    title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'planned',
                    start_date TEXT,
                    end_date TEXT,
                    notes TEXT DEFAULT '',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS offers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    client_id INTEGER NOT NULL REFERENCES clients (id),
                    project_id INTEGER REFERENCES projects (id),
                    offer_number TEXT NOT NULL UNIQUE,
                    offer_type TEXT NOT NULL DEFAULT 'it',
                    date TEXT,
                    valid_until TEXT,
                    consultant_name TEXT DEFAULT '',
                    currency TEXT DEFAULT 'EUR',
                    status TEXT NOT NULL DEFAULT 'draft',
                    modifiers_json TEXT,
                    breakdown_json TEXT,
                    total TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS offer_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    offer_id INTEGER NOT NULL REFERENCES offers (id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    service_name TEXT,
                    hours TEXT,
                    hourly_rate TEXT,
                    discount_percent TEXT,
                    net_total TEXT,
                    is_fixed_price INTEGER DEFAULT 0
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS invoices (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    client_id INTEGER NOT NULL REFERENCES clients (id),
                    project_id INTEGER REFERENCES projects (id),
                    offer_id INTEGER REFERENCES offers (id),
                    invoice_number TEXT NOT NULL UNIQUE,
                    invoice_type TEXT NOT NULL DEFAULT 'it',
                    invoice_date TEXT,
                    due_date TEXT,
                    payment_term_days INTEGER,
                    customer_number TEXT,
                    net_amount TEXT,
                    vat_amount TEXT,
                    total_amount TEXT,
                    vat_percent TEXT,
                    currency TEXT DEFAULT 'EUR',
                    is_partial_payment INTEGER DEFAULT 0,
                    partial_payment_of_total TEXT,
                    status TEXT NOT NULL DEFAULT 'draft',
                    notes TEXT,
                    breakdown_json TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS invoice_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    invoice_id INTEGER NOT NULL REFERENCES invoices (id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    description TEXT,
                    quantity TEXT,
                    unit TEXT,
                    unit_price TEXT,
                    vat_percent TEXT,
                    discount_percent TEXT,
                    total TEXT
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS transactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    type TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    description TEXT DEFAULT '',
                    category TEXT,
                    date TEXT NOT NULL,
                    notes TEXT,
                    related_invoice_id INTEGER REFERENCES invoices (id),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS time_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    project_id INTEGER NOT NULL REFERENCES projects (id),
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    duration_minutes INTEGER,
                    note TEXT DEFAULT ''
                )
            ''')

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_tx_invoice ON transactions(related_invoice_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_tx_date ON transactions(date)")

    # =========================
    # CLIENTS / PROJECTS
    # =========================
    def insert_client(self, client: Client, conn=None) -> int:
        with self._use(conn) as c:
            cursor = c.execute('''
                INSERT INTO clients (name, company, email, phone, address, notes, status, customer_number)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ''', (client.name, client.company, client.email, client.phone, client.address,
                  client.notes, client.status.value, client.customer_number))
            client.id = cursor.lastrowid
            return client.id

    def get_client(self, client_id: int) -> Client:
        with self._use() as c:
            row = c.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Client {client_id} not found")
        return Client(
            id=row['id'], name=row['name'], company=row['company'], email=row['email'],
            phone=row['phone'], address=row['address'], notes=row['notes'],
            status=ClientStatus(row['status']), customer_number=row['customer_number'],
        )

    def update_client_status(self, client_id: int, status: ClientStatus, conn=None):
        self._update_status("clients", client_id, status.value, conn)

    def insert_project(self, project: Project, conn=None) -> int:
        with self._use(conn) as c:
            cursor = c.execute('''
                INSERT INTO projects (client_id, title, status, start_date, end_date, notes)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (project.client_id, project.title, project.status.value,
                  project.start_date.isoformat() if project.start_date else None,
                  project.end_date.isoformat() if project.end_date else None, project.notes))
            project.id = cursor.lastrowid
            return project.id

    def get_project(self, project_id: int) -> Project:
        with self._use() as c:
            row = c.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Project {project_id} not found")
        return self._row_to_project(row)

    def list_projects(self, limit: int = None) -> List[Project]:
        query = "SELECT * FROM projects ORDER BY created_at DESC, id DESC"
        params = ()
        if limit:
            query += " LIMIT ?"
            params = (limit,)
        with self._use() as c:
            return [self._row_to_project(r) for r in c.execute(query, params).fetchall()]

    def update_project_status(self, project_id: int, status: ProjectStatus, conn=None):
        self._update_status("projects", project_id, status.value, conn)

    def _row_to_project(self, row) -> Project:
        return Project(
            id=row['id'], client_id=row['client_id'], title=row['title'],
            status=ProjectStatus(row['status']), start_date=_date(row['start_date']),
            end_date=_date(row['end_date']), notes=row['notes'],
        )

    def count_rows(self, table: str, status: str = None) -> int:
        if table not in ("clients", "projects", "offers", "invoices"):
            raise ValueError(f"Unknown table {table}")
        query = f"SELECT COUNT(*) FROM {table}"
        params = ()
        if status:
            query += " WHERE status = ?"
            params = (status,)
        with self._use() as c:
            return c.execute(query, params).fetchone()[0]

    def project_status_counts(self) -> Dict[str, int]:
        with self._use() as c:
            rows = c.execute("SELECT status, COUNT(*) AS n FROM projects GROUP BY status").fetchall()
        return {r['status']: r['n'] for r in rows}

    def _update_status(self, table: str, record_id: int, status: str, conn=None):
        with self._use(conn) as c:
            cursor = c.execute(f"UPDATE {table} SET status = ? WHERE id = ?", (status, record_id))
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"{table[:-1].capitalize()} {record_id} not found")

    # =========================
    # OFFERS
    # =========================
    def list_offer_numbers(self, prefix: str) -> List[str]:
        return self._list_numbers("offers", "offer_number", prefix)

    def insert_offer(self, offer: Offer, conn=None) -> int:
        try:
            with self._use(conn) as c:
                cursor = c.execute('''
                    INSERT INTO offers (client_id, project_id, offer_number, offer_type, date, valid_until,
                                        consultant_name, currency, status, modifiers_json, breakdown_json, total)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (
                    offer.client_id, offer.project_id, offer.number, offer.offer_type.value,
                    offer.date.isoformat() if offer.date else None,
                    offer.valid_until.isoformat() if offer.valid_until else None,
                    offer.consultant_name, offer.currency, offer.status.value,
                    PersistenceService.to_json(offer.modifiers),
                    PersistenceService.to_json(offer.breakdown) if offer.breakdown else None,
                    _dec(offer.total),
                ))
                offer.id = cursor.lastrowid
                self._insert_offer_items(c, offer)
        except sqlite3.IntegrityError as e:
            self._raise_number_conflict(e, "offers.offer_number", offer.number)
        return offer.id

    def update_offer(self, offer: Offer, conn=None):
        """Rewrite items and the snapshot. Status is left alone."""
        with self._use(conn) as c:
            cursor = c.execute('''
                UPDATE offers
                SET client_id = ?, project_id = ?, offer_type = ?, date = ?, valid_until = ?,
                    consultant_name = ?, currency = ?, modifiers_json = ?, breakdown_json = ?, total = ?
                WHERE id = ?
            ''', (
                offer.client_id, offer.project_id, offer.offer_type.value,
                offer.date.isoformat() if offer.date else None,
                offer.valid_until.isoformat() if offer.valid_until else None,
                offer.consultant_name, offer.currency,
                PersistenceService.to_json(offer.modifiers),
                PersistenceService.to_json(offer.breakdown) if offer.breakdown else None,
                _dec(offer.total), offer.id,
            ))
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Offer {offer.id} not found")
            c.execute("DELETE FROM offer_items WHERE offer_id = ?", (offer.id,))
            self._insert_offer_items(c, offer)

    def _insert_offer_items(self, conn, offer: Offer):
        for item in offer.items:
            conn.execute('''
                INSERT INTO offer_items (offer_id, position, service_name, hours, hourly_rate,
                                         discount_percent, net_total, is_fixed_price)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ''', (offer.id, item.position, item.description, _dec(item.hours), _dec(item.hourly_rate),
                  _dec(item.discount_percent), _dec(item.computed_net_total()), int(item.is_fixed_price)))

    def get_offer(self, offer_id: int) -> Offer:
        with self._use() as c:
            row = c.execute("SELECT * FROM offers WHERE id = ?", (offer_id,)).fetchone()
            if row is None:
                raise RecordNotFoundError(f"Offer {offer_id} not found")
            item_rows = c.execute(
                "SELECT * FROM offer_items WHERE offer_id = ? ORDER BY position", (offer_id,)).fetchall()
        return self._row_to_offer(row, item_rows)

    def list_offers(self, status: OfferStatus = None, limit: int = None) -> List[Offer]:
        query = "SELECT * FROM offers"
        params = []
        if status:
            query += " WHERE status = ?"
            params.append(status.value)
        query += " ORDER BY created_at DESC, id DESC"
        if limit:
            query += " LIMIT ?"
            params.append(limit)
        with self._use() as c:
            rows = c.execute(query, params).fetchall()
            offers = []
            for row in rows:
                item_rows = c.execute(
                    "SELECT * FROM offer_items WHERE offer_id = ? ORDER BY position", (row['id'],)).fetchall()
                offers.append(self._row_to_offer(row, item_rows))
        return offers

    def update_offer_status(self, offer_id: int, status: OfferStatus, conn=None):
        self._update_status("offers", offer_id, status.value, conn)

    def _row_to_offer(self, row, item_rows) -> Offer:
        items = []
        for r in item_rows:
            if r['is_fixed_price']:
                items.append(LineItem(position=r['position'], description=r['service_name'] or "",
                                      discount_percent=to_decimal(r['discount_percent']),
                                      net_total=to_decimal(r['net_total'])))
            else:
                items.append(LineItem(position=r['position'], description=r['service_name'] or "",
                                      hours=to_decimal(r['hours']), hourly_rate=to_decimal(r['hourly_rate']),
                                      discount_percent=to_decimal(r['discount_percent'])))
        return Offer(
            id=row['id'], client_id=row['client_id'], project_id=row['project_id'],
            number=row['offer_number'], offer_type=BillingType(row['offer_type']),
            date=_date(row['date']), valid_until=_date(row['valid_until']),
            consultant_name=row['consultant_name'], currency=row['currency'],
            status=OfferStatus(row['status']), items=items,
            modifiers=PersistenceService.modifiers_from_json(row['modifiers_json']),
            breakdown=PersistenceService.breakdown_from_json(row['breakdown_json']),
        )

    # =========================
    # INVOICES
    # =========================
    def list_invoice_numbers(self, prefix: str) -> List[str]:
        return self._list_numbers("invoices", "invoice_number", prefix)

    def insert_invoice(self, invoice: Invoice, conn=None) -> int:
        try:
            with self._use(conn) as c:
                cursor = c.execute('''
                    INSERT INTO invoices (client_id, project_id, offer_id, invoice_number, invoice_type,
                                          invoice_date, due_date, payment_term_days, customer_number,
                                          net_amount, vat_amount, total_amount, vat_percent, currency,
                                          is_partial_payment, partial_payment_of_total, status, notes,
                                          breakdown_json)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ''', (
                    invoice.client_id, invoice.project_id, invoice.offer_id, invoice.number,
                    invoice.invoice_type.value, invoice.invoice_date.isoformat(), invoice.due_date.isoformat(),
                    invoice.payment_term_days, invoice.customer_number,
                    _dec(invoice.net_amount), _dec(invoice.vat_amount), _dec(invoice.total_amount),
                    _dec(invoice.vat_percent), invoice.currency, int(invoice.is_partial_payment),
                    _dec(invoice.partial_payment_of_total), invoice.status.value, invoice.notes,
                    PersistenceService.to_json(invoice.breakdown) if invoice.breakdown else None,
                ))
                invoice.id = cursor.lastrowid
                self._insert_invoice_items(c, invoice)
        except sqlite3.IntegrityError as e:
            self._raise_number_conflict(e, "invoices.invoice_number", invoice.number)
        return invoice.id

    def update_invoice(self, invoice: Invoice, conn=None):
        """Rewrite lines and the amount snapshot. Status is left alone."""
        with self._use(conn) as c:
            cursor = c.execute('''
                UPDATE invoices
                SET client_id = ?, project_id = ?, offer_id = ?, invoice_type = ?, invoice_date = ?,
                    due_date = ?, payment_term_days = ?, customer_number = ?, net_amount = ?,
                    vat_amount = ?, total_amount = ?, vat_percent = ?, currency = ?,
                    is_partial_payment = ?, partial_payment_of_total = ?, notes = ?, breakdown_json = ?
                WHERE id = ?
            ''', (
                invoice.client_id, invoice.project_id, invoice.offer_id, invoice.invoice_type.value,
                invoice.invoice_date.isoformat(), invoice.due_date.isoformat(), invoice.payment_term_days,
                invoice.customer_number, _dec(invoice.net_amount), _dec(invoice.vat_amount),
                _dec(invoice.total_amount), _dec(invoice.vat_percent), invoice.currency,
                int(invoice.is_partial_payment), _dec(invoice.partial_payment_of_total), invoice.notes,
                PersistenceService.to_json(invoice.breakdown) if invoice.breakdown else None,
                invoice.id,
            ))
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Invoice {invoice.id} not found")
            c.execute("DELETE FROM invoice_items WHERE invoice_id = ?", (invoice.id,))
            self._insert_invoice_items(c, invoice)

    def _insert_invoice_items(self, conn, invoice: Invoice):
        for line in invoice.lines:
            conn.execute('''
                INSERT INTO invoice_items (invoice_id, position, description, quantity, unit, unit_price,
                                           vat_percent, discount_percent, total)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (invoice.id, line.position, line.description, _dec(line.quantity), line.unit,
                  _dec(line.unit_price), _dec(line.vat_percent), _dec(line.discount_percent), _dec(line.total)))

    def get_invoice(self, invoice_id: int, conn=None) -> Invoice:
        with self._use(conn) as c:
            row = c.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
            if row is None:
                raise RecordNotFoundError(f"Invoice {invoice_id} not found")
            line_rows = c.execute(
                "SELECT * FROM invoice_items WHERE invoice_id = ? ORDER BY position", (invoice_id,)).fetchall()
        return self._row_to_invoice(row, line_rows)

    def list_invoices(self, status: InvoiceStatus = None) -> List[Invoice]:
        query = "SELECT id FROM invoices"
        params = []
        if status:
            query += " WHERE status = ?"
            params.append(status.value)
        query += " ORDER BY invoice_date DESC, id DESC"
        with self._use() as c:
            ids = [r['id'] for r in c.execute(query, params).fetchall()]
            return [self.get_invoice(i, c) for i in ids]

    def update_invoice_status(self, invoice_id: int, status: InvoiceStatus, conn=None):
        self._update_status("invoices", invoice_id, status.value, conn)

    def _row_to_invoice(self, row, line_rows) -> Invoice:
        lines = [
            InvoiceLine(position=r['position'], description=r['description'] or "",
                        quantity=to_decimal(r['quantity']), unit=r['unit'] or "Stk",
                        unit_price=to_decimal(r['unit_price']), vat_percent=to_decimal(r['vat_percent']),
                        discount_percent=to_decimal(r['discount_percent']))
            for r in line_rows
        ]
        return Invoice(
            id=row['id'], client_id=row['client_id'], project_id=row['project_id'], offer_id=row['offer_id'],
            number=row['invoice_number'], invoice_type=BillingType(row['invoice_type']),
            invoice_date=_date(row['invoice_date']), payment_term_days=row['payment_term_days'],
            customer_number=row['customer_number'], vat_percent=to_decimal(row['vat_percent']),
            currency=row['currency'], is_partial_payment=bool(row['is_partial_payment']),
            partial_payment_of_total=(to_decimal(row['partial_payment_of_total'])
                                      if row['partial_payment_of_total'] is not None else None),
            status=InvoiceStatus(row['status']), notes=row['notes'], lines=lines,
            breakdown=PersistenceService.breakdown_from_json(row['breakdown_json']),
        )

    # =========================
    # TRANSACTIONS / TIME
    # =========================
    def insert_transaction(self, transaction: Transaction, conn=None) -> int:
        with self._use(conn) as c:
            cursor = c.execute('''
                INSERT INTO transactions (type, amount, description, category, date, notes, related_invoice_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', (transaction.type.value, _dec(transaction.amount), transaction.description,
                  transaction.category, transaction.date.isoformat(), transaction.notes,
                  transaction.related_invoice_id))
            transaction.id = cursor.lastrowid
            return transaction.id

    def list_transactions(self, tx_type: TransactionType = None, start: datetime.date = None,
                          end: datetime.date = None, conn=None) -> List[Transaction]:
        query = "SELECT * FROM transactions"
        where, params = [], []
        if tx_type:
            where.append("type = ?")
            params.append(tx_type.value)
        if start:
            where.append("date >= ?")
            params.append(start.isoformat())
        if end:
            where.append("date <= ?")
            params.append(end.isoformat())
        if where:
            query += " WHERE " + " AND ".join(where)
        query += " ORDER BY date DESC, id DESC"
        with self._use(conn) as c:
            rows = c.execute(query, params).fetchall()
        return [
            Transaction(id=r['id'], type=TransactionType(r['type']), amount=to_decimal(r['amount']),
                        description=r['description'], category=r['category'], date=_date(r['date']),
                        notes=r['notes'], related_invoice_id=r['related_invoice_id'])
            for r in rows
        ]

    def find_income_for_invoice(self, invoice_id: int, conn=None) -> List[int]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT id FROM transactions WHERE related_invoice_id = ? AND type = ?",
                (invoice_id, TransactionType.INCOME.value)).fetchall()
        return [r['id'] for r in rows]

    def delete_income_for_invoice(self, invoice_id: int, conn=None) -> int:
        with self._use(conn) as c:
            cursor = c.execute(
                "DELETE FROM transactions WHERE related_invoice_id = ? AND type = ?",
                (invoice_id, TransactionType.INCOME.value))
            return cursor.rowcount

    def insert_time_entry(self, entry: TimeEntry, conn=None) -> int:
        with self._use(conn) as c:
            cursor = c.execute('''
                INSERT INTO time_entries (project_id, start_time, end_time, duration_minutes, note)
                VALUES (?, ?, ?, ?, ?)
            ''', (entry.project_id, entry.start_time.isoformat(),
                  entry.end_time.isoformat() if entry.end_time else None,
                  entry.duration_minutes, entry.note))
            entry.id = cursor.lastrowid
            return entry.id

    def list_time_entries(self, start: datetime.datetime = None, end: datetime.datetime = None) -> List[TimeEntry]:
        query = "SELECT * FROM time_entries"
        where, params = [], []
        if start:
            where.append("start_time >= ?")
            params.append(start.isoformat())
        if end:
            where.append("start_time <= ?")
            params.append(end.isoformat())
        if where:
            query += " WHERE " + " AND ".join(where)
        query += " ORDER BY start_time DESC"
        with self._use() as c:
            rows = c.execute(query, params).fetchall()
        return [
            TimeEntry(id=r['id'], project_id=r['project_id'], start_time=_datetime(r['start_time']),
                      end_time=_datetime(r['end_time']), duration_minutes=r['duration_minutes'],
                      note=r['note'])
            for r in rows
        ]

    # =========================
    # PRIVATE
    # =========================
    def _list_numbers(self, table: str, column: str, prefix: str) -> List[str]:
        with self._use() as c:
            rows = c.execute(f"SELECT {column} FROM {table} WHERE {column} LIKE ?", (f"{prefix}-%",)).fetchall()
        return [r[0] for r in rows]

    @staticmethod
    def _raise_number_conflict(error: sqlite3.IntegrityError, column: str, number: str):
        if column in str(error):
            raise NumberConflictError(number) from error
        raise error
