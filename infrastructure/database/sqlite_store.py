"""
SQLite backend store - row storage for conversations, messages and enhancements.
"""

import json
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Sequence

from services.chat_service.models import (
    Conversation,
    ConversationSummary,
    Enhancement,
    Message,
    Role,
    Settled,
    utc_now,
)
from services.errors import StoreError
from utils.logging_config import get_logger


class SQLiteStore:
    """
    Blocking row store. Every call opens its own connection so the store can be
    used from worker threads (see PersistenceGateway).
    """

    def __init__(self, db_path: str, clock: Callable[[], datetime] = utc_now):
        """
        Args:
            db_path: Path to the SQLite database file
            clock: Source of row timestamps
        """
        self.logger = get_logger(__name__)
        self.db_path = db_path
        self.clock = clock
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Create tables and indexes"""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        try:
            with self._connect() as conn:
                conn.executescript('''
                    CREATE TABLE IF NOT EXISTS conversations (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        user_id TEXT NOT NULL,
                        title TEXT NOT NULL,
                        summary TEXT,
                        tags TEXT NOT NULL DEFAULT '[]',
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS messages (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        conversation_id TEXT NOT NULL
                            REFERENCES conversations (id) ON DELETE CASCADE,
                        role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
                        content TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS prompt_enhancements (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        user_id TEXT NOT NULL,
                        original_prompt TEXT NOT NULL,
                        enhanced_prompt TEXT NOT NULL,
                        provider TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_conversations_user ON conversations (user_id, updated_at);
                    CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages (conversation_id, created_at);
                    CREATE INDEX IF NOT EXISTS idx_enhancements_user ON prompt_enhancements (user_id, created_at);
                ''')

            self.logger.info(f"Store initialized at {self.db_path}")

        except sqlite3.Error as e:
            self.logger.error(f"Error initializing store: {e}")
            raise StoreError(f"Could not open the database: {e}") from e

    # Conversations

    def insert_conversation(self, owner_id: str, title: str, tags: Sequence[str] = ()) -> Conversation:
        conversation_id = str(uuid.uuid4())
        now = self.clock().isoformat()

        try:
            with self._connect() as conn:
                conn.execute('''
                    INSERT INTO conversations (id, user_id, title, tags, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                ''', (conversation_id, owner_id, title, json.dumps(list(tags)), now, now))
                row = self._fetch_conversation(conn, conversation_id)
        except sqlite3.Error as e:
            self.logger.error(f"Error creating conversation: {e}")
            raise StoreError(f"Failed to create conversation: {e}") from e

        return self._row_to_conversation(row)

    def select_conversations(self, owner_id: str) -> List[ConversationSummary]:
        try:
            with self._connect() as conn:
                rows = conn.execute('''
                    SELECT c.*, COUNT(m.id) AS message_count
                    FROM conversations c
                    LEFT JOIN messages m ON m.conversation_id = c.id
                    WHERE c.user_id = ?
                    GROUP BY c.seq
                    ORDER BY c.updated_at DESC, c.seq ASC
                ''', (owner_id,)).fetchall()
        except sqlite3.Error as e:
            self.logger.error(f"Error listing conversations: {e}")
            raise StoreError(f"Failed to load conversations: {e}") from e

        return [
            ConversationSummary(
                conversation=self._row_to_conversation(row),
                message_count=row["message_count"] or 0,
            )
            for row in rows
        ]

    def update_conversation(
        self,
        conversation_id: str,
        title: Optional[str] = None,
        summary: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Conversation:
        assignments = ["updated_at = ?"]
        params: list = [self.clock().isoformat()]
        if title is not None:
            assignments.append("title = ?")
            params.append(title)
        if summary is not None:
            assignments.append("summary = ?")
            params.append(summary)
        if tags is not None:
            assignments.append("tags = ?")
            params.append(json.dumps(list(tags)))
        params.append(conversation_id)

        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE conversations SET {', '.join(assignments)} WHERE id = ?", params
                )
                if cursor.rowcount == 0:
                    raise StoreError(f"Conversation not found: {conversation_id}")
                row = self._fetch_conversation(conn, conversation_id)
        except sqlite3.Error as e:
            self.logger.error(f"Error updating conversation: {e}")
            raise StoreError(f"Failed to update conversation: {e}") from e

        return self._row_to_conversation(row)

    def delete_conversation(self, conversation_id: str, owner_id: str) -> None:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    'DELETE FROM conversations WHERE id = ? AND user_id = ?',
                    (conversation_id, owner_id),
                )
                if cursor.rowcount == 0:
                    raise StoreError(f"Conversation not found: {conversation_id}")
        except sqlite3.Error as e:
            self.logger.error(f"Error deleting conversation: {e}")
            raise StoreError(f"Failed to delete conversation: {e}") from e

        self.logger.info(f"Deleted conversation {conversation_id}")

    # Messages

    def select_messages(self, conversation_id: str) -> List[Message]:
        try:
            with self._connect() as conn:
                rows = conn.execute('''
                    SELECT * FROM messages
                    WHERE conversation_id = ?
                    ORDER BY created_at ASC, seq ASC
                ''', (conversation_id,)).fetchall()
        except sqlite3.Error as e:
            self.logger.error(f"Error loading messages: {e}")
            raise StoreError(f"Failed to load messages: {e}") from e

        return [self._row_to_message(row) for row in rows]

    def insert_message(self, conversation_id: str, role: Role, content: str) -> Message:
        message_id = str(uuid.uuid4())
        now = self.clock().isoformat()

        try:
            with self._connect() as conn:
                conn.execute('''
                    INSERT INTO messages (id, conversation_id, role, content, created_at)
                    VALUES (?, ?, ?, ?, ?)
                ''', (message_id, conversation_id, Role(role).value, content, now))
                conn.execute(
                    'UPDATE conversations SET updated_at = ? WHERE id = ?',
                    (now, conversation_id),
                )
                row = conn.execute('SELECT * FROM messages WHERE id = ?', (message_id,)).fetchone()
        except sqlite3.IntegrityError as e:
            self.logger.error(f"Rejected message for {conversation_id}: {e}")
            raise StoreError(f"Conversation not found: {conversation_id}") from e
        except sqlite3.Error as e:
            self.logger.error(f"Error saving message: {e}")
            raise StoreError(f"Failed to save message: {e}") from e

        return self._row_to_message(row)

    # Enhancements

    def select_enhancements(self, owner_id: str) -> List[Enhancement]:
        try:
            with self._connect() as conn:
                rows = conn.execute('''
                    SELECT * FROM prompt_enhancements
                    WHERE user_id = ?
                    ORDER BY created_at DESC, seq DESC
                ''', (owner_id,)).fetchall()
        except sqlite3.Error as e:
            self.logger.error(f"Error loading enhancements: {e}")
            raise StoreError(f"Failed to load enhancements: {e}") from e

        return [self._row_to_enhancement(row) for row in rows]

    def insert_enhancement(self, owner_id: str, original: str, enhanced: str, provider: str) -> Enhancement:
        enhancement_id = str(uuid.uuid4())
        now = self.clock().isoformat()

        try:
            with self._connect() as conn:
                conn.execute('''
                    INSERT INTO prompt_enhancements
                        (id, user_id, original_prompt, enhanced_prompt, provider, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                ''', (enhancement_id, owner_id, original, enhanced, provider, now))
                row = conn.execute(
                    'SELECT * FROM prompt_enhancements WHERE id = ?', (enhancement_id,)
                ).fetchone()
        except sqlite3.Error as e:
            self.logger.error(f"Error saving enhancement: {e}")
            raise StoreError(f"Failed to save enhancement: {e}") from e

        return self._row_to_enhancement(row)

    def delete_enhancement(self, enhancement_id: str, owner_id: str) -> None:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    'DELETE FROM prompt_enhancements WHERE id = ? AND user_id = ?',
                    (enhancement_id, owner_id),
                )
                if cursor.rowcount == 0:
                    raise StoreError(f"Enhancement not found: {enhancement_id}")
        except sqlite3.Error as e:
            self.logger.error(f"Error deleting enhancement: {e}")
            raise StoreError(f"Failed to delete enhancement: {e}") from e

    # Row mapping

    @staticmethod
    def _fetch_conversation(conn: sqlite3.Connection, conversation_id: str) -> sqlite3.Row:
        return conn.execute('SELECT * FROM conversations WHERE id = ?', (conversation_id,)).fetchone()

    @staticmethod
    def _row_to_conversation(row: sqlite3.Row) -> Conversation:
        return Conversation(
            id=row["id"],
            owner_id=row["user_id"],
            title=row["title"],
            summary=row["summary"],
            tags=tuple(json.loads(row["tags"] or "[]")),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> Message:
        return Message(
            identity=Settled(row["id"]),
            conversation_id=row["conversation_id"],
            role=Role(row["role"]),
            content=row["content"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_enhancement(row: sqlite3.Row) -> Enhancement:
        return Enhancement(
            id=row["id"],
            owner_id=row["user_id"],
            original_prompt=row["original_prompt"],
            enhanced_prompt=row["enhanced_prompt"],
            provider=row["provider"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
