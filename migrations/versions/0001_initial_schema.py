"""Initial schema — all tables, indexes, and constraints for legalms.

Revision ID: 0001
Revises:     (none)
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op


def upgrade() -> None:
    # ---------------------------------------------------------------------- #
    # Enable pgcrypto for gen_random_uuid()                                   #
    # ---------------------------------------------------------------------- #
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ---------------------------------------------------------------------- #
    # ENUM-like CHECK constraints are expressed as VARCHAR + CHECK            #
    # so that values can be added without a schema migration.                  #
    # ---------------------------------------------------------------------- #

    # ------------------------------------------------------------------ #
    # users                                                                #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE users (
            id            UUID          NOT NULL DEFAULT gen_random_uuid(),
            email         VARCHAR(200)  NOT NULL,
            password_hash VARCHAR(200)  NOT NULL,
            first_name    VARCHAR(100)  NOT NULL,
            last_name     VARCHAR(100)  NOT NULL,
            phone         VARCHAR(50),
            role          VARCHAR(20)   NOT NULL DEFAULT 'Client',
            is_active     BOOLEAN       NOT NULL DEFAULT TRUE,
            created_at    TIMESTAMP     NOT NULL DEFAULT NOW(),
            updated_at    TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_users PRIMARY KEY (id),
            CONSTRAINT uq_users_email UNIQUE (email),
            CONSTRAINT chk_users_role CHECK (role IN ('Admin', 'Lawyer', 'Client'))
        )
    """)

    # ------------------------------------------------------------------ #
    # clients                                                              #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE clients (
            id                 UUID          NOT NULL DEFAULT gen_random_uuid(),
            name               VARCHAR(200)  NOT NULL,
            email              VARCHAR(200)  NOT NULL,
            phone              VARCHAR(50)   NOT NULL,
            address            TEXT          NOT NULL,
            company_name       VARCHAR(200),
            assigned_lawyer_id UUID,
            created_by         UUID          NOT NULL,
            created_at         TIMESTAMP     NOT NULL DEFAULT NOW(),
            updated_at         TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_clients PRIMARY KEY (id),
            CONSTRAINT uq_clients_email UNIQUE (email),
            CONSTRAINT fk_clients_lawyer FOREIGN KEY (assigned_lawyer_id)
                REFERENCES users (id) ON DELETE SET NULL,
            CONSTRAINT fk_clients_created_by FOREIGN KEY (created_by)
                REFERENCES users (id)
        )
    """)

    # ------------------------------------------------------------------ #
    # sequence_counters — last allocated number per (kind, year)           #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE sequence_counters (
            kind     VARCHAR(20)  NOT NULL,
            year     SMALLINT     NOT NULL,
            last_seq INT          NOT NULL DEFAULT 0,
            CONSTRAINT pk_sequence_counters PRIMARY KEY (kind, year),
            CONSTRAINT chk_sequence_counters_kind CHECK (kind IN ('Case', 'Invoice')),
            CONSTRAINT chk_sequence_counters_last_seq CHECK (last_seq >= 0)
        )
    """)

    # ------------------------------------------------------------------ #
    # cases                                                                #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE cases (
            id                 UUID          NOT NULL DEFAULT gen_random_uuid(),
            case_number        VARCHAR(30)   NOT NULL,   -- CASE-{year}-{seq}
            number_degraded    BOOLEAN       NOT NULL DEFAULT FALSE,
            title              VARCHAR(300)  NOT NULL,
            description        TEXT          NOT NULL,
            status             VARCHAR(20)   NOT NULL DEFAULT 'Open',
            priority           VARCHAR(10)   NOT NULL DEFAULT 'Medium',
            case_type          VARCHAR(30)   NOT NULL,
            client_id          UUID          NOT NULL,
            assigned_lawyer_id UUID          NOT NULL,
            court_name         VARCHAR(200)  NOT NULL,
            filing_date        TIMESTAMP     NOT NULL DEFAULT NOW(),
            next_hearing_date  TIMESTAMP,
            custom_fields      JSONB         NOT NULL DEFAULT '{}'::jsonb,
            created_by         UUID          NOT NULL,
            created_at         TIMESTAMP     NOT NULL DEFAULT NOW(),
            updated_at         TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_cases PRIMARY KEY (id),
            CONSTRAINT uq_cases_case_number UNIQUE (case_number),
            CONSTRAINT fk_cases_client FOREIGN KEY (client_id)
                REFERENCES clients (id),
            CONSTRAINT fk_cases_lawyer FOREIGN KEY (assigned_lawyer_id)
                REFERENCES users (id),
            CONSTRAINT fk_cases_created_by FOREIGN KEY (created_by)
                REFERENCES users (id),
            CONSTRAINT chk_cases_status CHECK (
                status IN ('Open', 'InProgress', 'Closed', 'OnHold')
            ),
            CONSTRAINT chk_cases_priority CHECK (
                priority IN ('Low', 'Medium', 'High', 'Urgent')
            )
        )
    """)

    # ------------------------------------------------------------------ #
    # case_timeline_events                                                 #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE case_timeline_events (
            id          UUID          NOT NULL DEFAULT gen_random_uuid(),
            case_id     UUID          NOT NULL,
            date        TIMESTAMP     NOT NULL DEFAULT NOW(),
            title       VARCHAR(300)  NOT NULL,
            description TEXT          NOT NULL,
            type        VARCHAR(20)   NOT NULL,
            created_by  UUID          NOT NULL,
            created_at  TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_case_timeline_events PRIMARY KEY (id),
            CONSTRAINT fk_case_timeline_events_case FOREIGN KEY (case_id)
                REFERENCES cases (id) ON DELETE CASCADE,
            CONSTRAINT fk_case_timeline_events_user FOREIGN KEY (created_by)
                REFERENCES users (id),
            CONSTRAINT chk_case_timeline_events_type CHECK (
                type IN ('filing', 'hearing', 'document', 'status_change', 'note')
            )
        )
    """)

    # ------------------------------------------------------------------ #
    # case_documents (metadata only)                                       #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE case_documents (
            id            UUID          NOT NULL DEFAULT gen_random_uuid(),
            case_id       UUID          NOT NULL,
            file_name     VARCHAR(255)  NOT NULL,
            file_path     VARCHAR(500)  NOT NULL,
            document_type VARCHAR(100)  NOT NULL,
            uploaded_by   UUID          NOT NULL,
            created_at    TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_case_documents PRIMARY KEY (id),
            CONSTRAINT fk_case_documents_case FOREIGN KEY (case_id)
                REFERENCES cases (id) ON DELETE CASCADE,
            CONSTRAINT fk_case_documents_user FOREIGN KEY (uploaded_by)
                REFERENCES users (id)
        )
    """)

    # ------------------------------------------------------------------ #
    # time_entries                                                         #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE time_entries (
            id          UUID           NOT NULL DEFAULT gen_random_uuid(),
            case_id     UUID           NOT NULL,
            lawyer_id   UUID           NOT NULL,
            date        TIMESTAMP      NOT NULL DEFAULT NOW(),
            hours       DECIMAL(8,2)   NOT NULL,
            description TEXT           NOT NULL,
            hourly_rate DECIMAL(12,2)  NOT NULL,
            amount      DECIMAL(12,2)  NOT NULL DEFAULT 0,
            created_at  TIMESTAMP      NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMP      NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_time_entries PRIMARY KEY (id),
            CONSTRAINT fk_time_entries_case FOREIGN KEY (case_id)
                REFERENCES cases (id) ON DELETE CASCADE,
            CONSTRAINT fk_time_entries_lawyer FOREIGN KEY (lawyer_id)
                REFERENCES users (id),
            CONSTRAINT chk_time_entries_hours CHECK (hours >= 0),
            CONSTRAINT chk_time_entries_rate CHECK (hourly_rate >= 0)
        )
    """)

    # ------------------------------------------------------------------ #
    # invoices                                                             #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE invoices (
            id              UUID           NOT NULL DEFAULT gen_random_uuid(),
            invoice_number  VARCHAR(30)    NOT NULL,   -- INV-{year}-{seq}
            number_degraded BOOLEAN        NOT NULL DEFAULT FALSE,
            client_id       UUID           NOT NULL,
            issue_date      TIMESTAMP      NOT NULL DEFAULT NOW(),
            due_date        TIMESTAMP      NOT NULL,
            total_amount    DECIMAL(12,2)  NOT NULL DEFAULT 0,
            status          VARCHAR(20)    NOT NULL DEFAULT 'Draft',
            created_by      UUID           NOT NULL,
            created_at      TIMESTAMP      NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMP      NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_invoices PRIMARY KEY (id),
            CONSTRAINT uq_invoices_invoice_number UNIQUE (invoice_number),
            CONSTRAINT fk_invoices_client FOREIGN KEY (client_id)
                REFERENCES clients (id),
            CONSTRAINT fk_invoices_created_by FOREIGN KEY (created_by)
                REFERENCES users (id),
            CONSTRAINT chk_invoices_status CHECK (
                status IN ('Draft', 'Sent', 'Paid', 'Overdue', 'Cancelled')
            )
        )
    """)

    op.execute("""
        CREATE TABLE invoice_items (
            id          UUID           NOT NULL DEFAULT gen_random_uuid(),
            invoice_id  UUID           NOT NULL,
            position    INT            NOT NULL DEFAULT 0,
            case_id     UUID           NOT NULL,
            description TEXT           NOT NULL,
            quantity    DECIMAL(10,2)  NOT NULL,
            rate        DECIMAL(12,2)  NOT NULL,
            amount      DECIMAL(12,2)  NOT NULL DEFAULT 0,
            CONSTRAINT pk_invoice_items PRIMARY KEY (id),
            CONSTRAINT fk_invoice_items_invoice FOREIGN KEY (invoice_id)
                REFERENCES invoices (id) ON DELETE CASCADE,
            CONSTRAINT fk_invoice_items_case FOREIGN KEY (case_id)
                REFERENCES cases (id) ON DELETE RESTRICT
        )
    """)

    # ------------------------------------------------------------------ #
    # messages                                                             #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE messages (
            id          UUID          NOT NULL DEFAULT gen_random_uuid(),
            sender_id   UUID          NOT NULL,
            receiver_id UUID          NOT NULL,
            subject     VARCHAR(300)  NOT NULL,
            content     TEXT          NOT NULL,
            is_read     BOOLEAN       NOT NULL DEFAULT FALSE,
            case_id     UUID,
            related_to  VARCHAR(20)   NOT NULL DEFAULT 'general',
            created_at  TIMESTAMP     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_messages PRIMARY KEY (id),
            CONSTRAINT fk_messages_sender FOREIGN KEY (sender_id)
                REFERENCES users (id),
            CONSTRAINT fk_messages_receiver FOREIGN KEY (receiver_id)
                REFERENCES users (id),
            CONSTRAINT fk_messages_case FOREIGN KEY (case_id)
                REFERENCES cases (id) ON DELETE SET NULL,
            CONSTRAINT chk_messages_related_to CHECK (
                related_to IN ('case', 'client', 'billing', 'general')
            )
        )
    """)

    # ------------------------------------------------------------------ #
    # notices                                                              #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE notices (
            id          UUID          NOT NULL DEFAULT gen_random_uuid(),
            title       VARCHAR(300)  NOT NULL,
            description TEXT          NOT NULL,
            notice_type VARCHAR(20)   NOT NULL DEFAULT 'Legal',
            case_id     UUID,
            client_id   UUID,
            issue_date  TIMESTAMP     NOT NULL DEFAULT NOW(),
            due_date    TIMESTAMP,
            status      VARCHAR(20)   NOT NULL DEFAULT 'Pending',
            priority    VARCHAR(10)   NOT NULL DEFAULT 'Medium',
            created_by  UUID          NOT NULL,
            created_at  TIMESTAMP     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMP     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_notices PRIMARY KEY (id),
            CONSTRAINT fk_notices_case FOREIGN KEY (case_id)
                REFERENCES cases (id) ON DELETE SET NULL,
            CONSTRAINT fk_notices_client FOREIGN KEY (client_id)
                REFERENCES clients (id) ON DELETE SET NULL,
            CONSTRAINT fk_notices_created_by FOREIGN KEY (created_by)
                REFERENCES users (id),
            CONSTRAINT chk_notices_type CHECK (
                notice_type IN ('Legal', 'Court', 'Administrative', 'Other')
            ),
            CONSTRAINT chk_notices_status CHECK (
                status IN ('Pending', 'Acknowledged', 'Responded', 'Expired')
            )
        )
    """)

    # ------------------------------------------------------------------ #
    # Indexes                                                              #
    # ------------------------------------------------------------------ #
    op.execute("CREATE INDEX idx_clients_assigned_lawyer ON clients (assigned_lawyer_id)")
    op.execute("CREATE INDEX idx_cases_client ON cases (client_id)")
    op.execute("CREATE INDEX idx_cases_assigned_lawyer ON cases (assigned_lawyer_id)")
    op.execute("CREATE INDEX idx_cases_case_type ON cases (case_type)")
    op.execute("CREATE INDEX idx_cases_status ON cases (status)")
    op.execute("CREATE INDEX idx_case_timeline_events_case ON case_timeline_events (case_id)")
    op.execute("CREATE INDEX idx_case_documents_case ON case_documents (case_id)")
    op.execute("CREATE INDEX idx_time_entries_case ON time_entries (case_id)")
    op.execute("CREATE INDEX idx_time_entries_lawyer ON time_entries (lawyer_id)")
    op.execute("CREATE INDEX idx_invoices_client ON invoices (client_id)")
    op.execute("CREATE INDEX idx_invoice_items_invoice ON invoice_items (invoice_id)")
    # messages — inbox / unread lookups
    op.execute("CREATE INDEX idx_messages_sender_created ON messages (sender_id, created_at)")
    op.execute(
        "CREATE INDEX idx_messages_receiver_read_created ON messages (receiver_id, is_read, created_at)"
    )
    op.execute("CREATE INDEX idx_notices_case ON notices (case_id)")
    op.execute("CREATE INDEX idx_notices_client ON notices (client_id)")
    op.execute("CREATE INDEX idx_notices_status_due ON notices (status, due_date)")

    # ------------------------------------------------------------------ #
    # updated_at auto-refresh trigger                                      #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
    """)
    for table in _UPDATED_AT_TABLES:
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column()
        """)


_UPDATED_AT_TABLES = ("users", "clients", "cases", "time_entries", "invoices", "messages", "notices")


def downgrade() -> None:
    for table in _UPDATED_AT_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column")
    op.execute("DROP TABLE IF EXISTS notices CASCADE")
    op.execute("DROP TABLE IF EXISTS messages CASCADE")
    op.execute("DROP TABLE IF EXISTS invoice_items CASCADE")
    op.execute("DROP TABLE IF EXISTS invoices CASCADE")
    op.execute("DROP TABLE IF EXISTS time_entries CASCADE")
    op.execute("DROP TABLE IF EXISTS case_documents CASCADE")
    op.execute("DROP TABLE IF EXISTS case_timeline_events CASCADE")
    op.execute("DROP TABLE IF EXISTS cases CASCADE")
    op.execute("DROP TABLE IF EXISTS sequence_counters CASCADE")
    op.execute("DROP TABLE IF EXISTS clients CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
