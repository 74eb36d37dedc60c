"""ReForma workshop job lifecycle and financial reconciliation core"""
