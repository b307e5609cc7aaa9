"""
Static daily expense history shown in the category-wise expense chart.

Each record has a date and per-category amounts (INR).
"""

EXPENSE_CATEGORIES = ("petrol", "toll", "maintenance", "misc")

EXPENSE_HISTORY = [
    {"date": "2024-01-01", "expenseCategory": {"petrol": 450, "toll": 120, "maintenance": 0, "misc": 60}},
    {"date": "2024-01-02", "expenseCategory": {"petrol": 520, "toll": 80, "maintenance": 150, "misc": 40}},
    {"date": "2024-01-03", "expenseCategory": {"petrol": 380, "toll": 120, "maintenance": 0, "misc": 90}},
    {"date": "2024-01-04", "expenseCategory": {"petrol": 610, "toll": 160, "maintenance": 0, "misc": 30}},
    {"date": "2024-01-05", "expenseCategory": {"petrol": 490, "toll": 100, "maintenance": 800, "misc": 55}},
    {"date": "2024-01-06", "expenseCategory": {"petrol": 700, "toll": 200, "maintenance": 0, "misc": 120}},
    {"date": "2024-01-07", "expenseCategory": {"petrol": 300, "toll": 40, "maintenance": 0, "misc": 75}},
]
