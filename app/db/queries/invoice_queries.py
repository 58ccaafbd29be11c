# {table} is always an InvoiceType table name, never request input.

INVOICE_COLUMNS = """
        id,
        invoice_number,
        client_name,
        client_phone,
        invoice_date,
        line_items,
        payments,
        status,
        type,
        created_at
"""

CREATE_INVOICE_TABLE = """
    -- Satu tabel per jenis invoice (hotel_invoices, taxplus_invoices).
    -- line_items dan payments disimpan sebagai JSONB agar satu baris = satu dokumen invoice.
    CREATE TABLE IF NOT EXISTS {table} (
        id UUID PRIMARY KEY,
        invoice_number TEXT NOT NULL,
        client_name TEXT NOT NULL,
        client_phone TEXT,
        invoice_date DATE NOT NULL,
        line_items JSONB NOT NULL DEFAULT '[]'::jsonb,
        payments JSONB NOT NULL DEFAULT '[]'::jsonb,
        status TEXT NOT NULL DEFAULT 'unpaid',
        type TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CONSTRAINT {table}_invoice_number_key UNIQUE (invoice_number)
    );
    CREATE INDEX IF NOT EXISTS {table}_invoice_date_idx
        ON {table} (invoice_date DESC, created_at DESC);
"""

COUNT_INVOICES = """
    -- Menghitung total invoice untuk pagination, dengan filter nama klien (opsional).
    SELECT COUNT(*)
    FROM {table}
    WHERE (%s IS NULL OR client_name ILIKE %s ESCAPE '\\');
"""

GET_PAGINATED_INVOICES = """
    -- Mengambil data invoice per halaman, terbaru (berdasarkan tanggal invoice) di atas.
    SELECT {columns}
    FROM {table}
    WHERE (%s IS NULL OR client_name ILIKE %s ESCAPE '\\')
    ORDER BY invoice_date DESC, created_at DESC
    LIMIT %s OFFSET %s;
"""

GET_INVOICE_BY_ID = """
    SELECT {columns}
    FROM {table}
    WHERE id = %s;
"""

GET_LAST_INVOICE_NUMBER = """
    -- Nomor invoice terakhir untuk prefix/tahun/bulan yang sama.
    -- Urut panjang dulu supaya urutan tetap benar kalau nomor urut lewat 9999.
    SELECT invoice_number
    FROM {table}
    WHERE invoice_number LIKE %s
    ORDER BY LENGTH(invoice_number) DESC, invoice_number DESC
    LIMIT 1;
"""

INSERT_INVOICE = """
    INSERT INTO {table} (
        id,
        invoice_number,
        client_name,
        client_phone,
        invoice_date,
        line_items,
        payments,
        status,
        type,
        created_at
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s);
"""

GET_INVOICE_PAYMENT_STATE_FOR_UPDATE = """
    -- Kunci baris invoice selama pembayaran ditambahkan dan status dihitung ulang.
    SELECT line_items, payments
    FROM {table}
    WHERE id = %s
    FOR UPDATE;
"""

UPDATE_INVOICE_PAYMENTS_AND_STATUS = """
    UPDATE {table}
    SET
        payments = %s,
        status = %s
    WHERE id = %s
    RETURNING {columns};
"""

UPDATE_INVOICE_STATUS = """
    -- Override status manual, tidak dicek terhadap total pembayaran.
    UPDATE {table}
    SET status = %s
    WHERE id = %s;
"""

DELETE_INVOICE_BY_ID = """
    DELETE FROM {table}
    WHERE id = %s;
"""
