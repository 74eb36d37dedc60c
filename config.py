"""Configuration settings for ReForma Workshop"""

# Workshop Information
WORKSHOP_NAME = "MAZDA RANGER BODY & PAINT"
DEFAULT_LANGUAGE = 'id'

# Ledger collections
JOBS_COLLECTION = 'jobs'
TRANSACTIONS_COLLECTION = 'transactions'
ASSETS_COLLECTION = 'assets'
SETTINGS_COLLECTION = 'settings'

# Business document numbers: family -> field holding the number
NUMBER_FAMILIES = {
    'BE': 'estimation_number',  # estimasi
    'WO': 'wo_number',          # work order
}
NUMBER_PADDING = 4

# Vehicle status values (statusKendaraan)
VEHICLE_WAITING_ESTIMATE = 'Tunggu Estimasi'
VEHICLE_WAITING_INSURANCE_SPK = 'Tunggu SPK Asuransi'
VEHICLE_IN_PROGRESS = 'Work In Progress'
VEHICLE_READY_FOR_PICKUP = 'Selesai (Tunggu Pengambilan)'
VEHICLE_FINISHED = 'Selesai'

# Work status values (statusPekerjaan)
WORK_NOT_STARTED = 'Belum Mulai Perbaikan'
WORK_FINISHING = 'Finishing'
WORK_FINISHED = 'Selesai'

DEFAULT_VEHICLE_POSITION = 'Di Bengkel'

# Legacy sentinel for an unassigned service advisor
UNASSIGNED_ADVISOR = 'Pending Allocation'
UNASSIGNED_ADVISOR_LABEL = 'Admin/User'

# Insurance label used for walk-in customers
PRIVATE_INSURANCE = 'Umum / Pribadi'

# Roles allowed to reopen a closed work order
MANAGER_ROLES = ['Manager']

# Receivables
OUTSTANDING_THRESHOLD = 1000  # ignore rounding leftovers
AGING_CURRENT_MAX_DAYS = 7
AGING_WARNING_MAX_DAYS = 14

# CRC follow-up status that counts as a successful service call
CRC_SUCCESS_STATUS = 'Contacted'

# Default settings (used when the settings collection is empty)
DEFAULT_SETTINGS = {
    'monthly_target': 600_000_000,
    'weekly_target': 150_000_000,
    'mechanic_names': sorted(["Mekanik A", "Mekanik B", "Mekanik C", "Mekanik D"]),
    'service_advisors': sorted(["Oscar", "Andika"]),
    'status_kendaraan_options': [
        "Tunggu Estimasi",
        "Tunggu SPK Asuransi",
        "Banding Harga SPK",
        "Unit di Pemilik (Tunggu Part)",
        "Booking Masuk",
        "Work In Progress",
        "Unit Rawat Jalan",
        "Selesai (Tunggu Pengambilan)",
        "Sudah Diambil Pemilik",
    ],
    'status_pekerjaan_options': [
        "Belum Mulai Perbaikan", "Las Ketok", "Bongkar", "Dempul", "Cat", "Poles",
        "Pemasangan", "Finishing", "Quality Control", "Tunggu Part", "Selesai",
    ],
    'role_options': ["Manager", "Service Advisor", "Admin Bengkel", "Foreman", "Sparepart", "Staff", "CRC"],
    'csi_indicators': [
        "Kualitas Perbaikan",
        "Ketepatan Waktu",
        "Pelayanan Service Advisor",
        "Kebersihan Kendaraan",
    ],
    'language': DEFAULT_LANGUAGE,
}

# User-facing notifications
MESSAGES = {
    'id': {
        'job_created': "Pekerjaan baru berhasil disimpan.",
        'job_updated': "Data pekerjaan diperbarui.",
        'update_failed': "Gagal memperbarui data. Periksa koneksi internet atau izin database.",
        'save_failed': "Gagal menyimpan transaksi.",
        'estimate_saved': "Estimasi Tersimpan",
        'wo_issued': "WO {number} Terbit!",
        'close_success': "WO Berhasil Ditutup.",
        'close_failed': "Gagal menutup WO.",
        'reopen_success': "WO Dibuka Kembali.",
        'reopen_failed': "Gagal membuka kembali WO.",
        'delete_success': "Dihapus.",
        'delete_failed': "Gagal menghapus pekerjaan.",
        'missing_identity': "Mohon lengkapi No. Polisi dan Nama Pelanggan",
        'confirm_close': "Yakin ingin menutup WO {number}?",
        'confirm_close_no_cost': "WO {number} belum memiliki pembebanan biaya. Tetap tutup WO?",
        'reopen_forbidden': "Hanya Manager yang dapat membuka kembali WO.",
    },
    'en': {
        'job_created': "New job saved.",
        'job_updated': "Job updated.",
        'update_failed': "Failed to update data. Check your connection or database permissions.",
        'save_failed': "Failed to save transaction.",
        'estimate_saved': "Estimate saved",
        'wo_issued': "WO {number} issued!",
        'close_success': "WO closed.",
        'close_failed': "Failed to close WO.",
        'reopen_success': "WO reopened.",
        'reopen_failed': "Failed to reopen WO.",
        'delete_success': "Deleted.",
        'delete_failed': "Failed to delete job.",
        'missing_identity': "Please fill in the plate number and customer name",
        'confirm_close': "Close WO {number}?",
        'confirm_close_no_cost': "WO {number} has no posted cost. Close it anyway?",
        'reopen_forbidden': "Only a Manager can reopen a WO.",
    },
}
