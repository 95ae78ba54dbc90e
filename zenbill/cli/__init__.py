"""Command-line interface for zenbill.

Usage:
    zenbill totals <invoice.json> [--json]
    zenbill schedule <start> [--type monthly] [--occurrences N]
    zenbill ledger <invoice.json>
    zenbill convert <amount> <from> <to>
    zenbill expenses template
    zenbill expenses check <file.csv> [--errors-out rejected.csv]
"""
