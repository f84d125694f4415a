# finance/calculations.py
"""
Standard VSLA formulas. Every group is computed the same way from its own
settings (share value, interest rate, welfare amount), so the numbers shown by
the dashboards, the reports and the ledger always agree.

Pure functions: no database access. Numeric columns arrive as Decimal, so
inputs go through as_float() first.
"""
import math


def as_float(value, default=0.0):
    if value is None or value == "":
        return default
    return float(value)


# ---------------------------------------------------------------
# 1. Shares: floor(savings_balance / saving_per_share)
# ---------------------------------------------------------------
def calculate_member_shares(savings_balance, saving_per_share):
    share_value = as_float(saving_per_share)
    if share_value <= 0:
        return 0
    return int(math.floor(as_float(savings_balance) / share_value))


# ---------------------------------------------------------------
# 2./3. Loan interest and total due (rate is % per month)
# ---------------------------------------------------------------
def calculate_loan_interest(principal, monthly_rate, months, compound=True):
    principal = as_float(principal)
    rate = as_float(monthly_rate) / 100
    if compound:
        return principal * math.pow(1 + rate, months) - principal
    return principal * rate * months


def calculate_loan_total_due(principal, monthly_rate, months, compound=True):
    return as_float(principal) + calculate_loan_interest(principal, monthly_rate, months, compound)


# ---------------------------------------------------------------
# 4. Cash in box
# ---------------------------------------------------------------
def calculate_cash_in_box(total_savings, total_loans_outstanding, available_cash=0):
    return as_float(total_savings) - as_float(total_loans_outstanding) + as_float(available_cash)


# ---------------------------------------------------------------
# 5. Welfare due over a period
# ---------------------------------------------------------------
def calculate_welfare_contribution(monthly_welfare_amount, months_active):
    return as_float(monthly_welfare_amount) * months_active


# ---------------------------------------------------------------
# 6. Share value once interest is distributed
# ---------------------------------------------------------------
def calculate_share_value_appreciation(original_share_value, total_interest_earned, total_shares):
    if total_shares <= 0:
        return as_float(original_share_value)
    return as_float(original_share_value) + as_float(total_interest_earned) / total_shares


# ---------------------------------------------------------------
# Repayment plans
# ---------------------------------------------------------------
def calculate_monthly_payment(principal, monthly_rate, months, compound=False):
    if months <= 0:
        raise ValueError("months must be positive")
    return calculate_loan_total_due(principal, monthly_rate, months, compound) / months


def generate_payment_schedule(principal, monthly_rate, months, compound=False):
    """
    Equal instalments of total_due / months. The interest part of each row is
    taken on the balance still owed; the balance never shows below zero.
    """
    rate = as_float(monthly_rate)
    monthly_payment = calculate_monthly_payment(principal, rate, months, compound)
    balance = calculate_loan_total_due(principal, rate, months, compound)

    schedule = []
    for month in range(1, months + 1):
        payment = min(monthly_payment, balance)
        interest = balance * rate / 100
        balance -= payment
        schedule.append({
            "month": month,
            "payment": payment,
            "principal": payment - interest,
            "interest": interest,
            "balance": max(0.0, balance),
        })
    return schedule


def calculate_amortized_payment(principal, annual_rate, months):
    """
    Annuity (reducing balance) plan used by the loan calculator.
    annual_rate is a yearly percentage; interest accrues monthly at annual_rate / 12.
    Returns monthly_payment, total_amount, total_interest and the schedule.
    """
    principal = as_float(principal)
    if months <= 0:
        raise ValueError("months must be positive")
    rate = as_float(annual_rate) / 100 / 12

    if rate == 0:
        monthly_payment = principal / months
    else:
        growth = math.pow(1 + rate, months)
        monthly_payment = principal * rate * growth / (growth - 1)

    total_amount = monthly_payment * months
    balance = principal
    schedule = []
    for month in range(1, months + 1):
        interest = balance * rate
        principal_part = monthly_payment - interest
        balance -= principal_part
        schedule.append({
            "month": month,
            "payment": monthly_payment,
            "principal": principal_part,
            "interest": interest,
            "balance": max(0.0, balance),
        })

    return {
        "monthly_payment": monthly_payment,
        "total_amount": total_amount,
        "total_interest": total_amount - principal,
        "schedule": schedule,
    }


# ---------------------------------------------------------------
# Group roll-up
# ---------------------------------------------------------------
ESTIMATED_LOAN_MONTHS = 6


def calculate_group_financials(group, members, loans=None):
    loans = loans or []
    share_value = as_float(group.saving_per_share)
    interest_rate = as_float(group.interest_rate)
    welfare_amount = as_float(group.welfare_amount)
    available_cash = as_float(group.available_cash)

    total_savings = sum(as_float(m.savings_balance) for m in members)
    total_welfare = sum(as_float(m.welfare_balance) for m in members)
    total_outstanding = sum(as_float(m.current_loan) for m in members)
    total_shares = sum(calculate_member_shares(m.savings_balance, share_value) for m in members)

    total_original = 0.0
    total_interest = 0.0
    for loan in loans:
        principal = as_float(loan.amount)
        total_original += principal
        if loan.total_amount_due:
            total_interest += as_float(loan.total_amount_due) - principal
        else:
            total_interest += calculate_loan_interest(principal, interest_rate, loan.term_months or 1, compound=False)

    # no loan rows but balances outstanding: back out the principal at simple interest
    if not loans and total_outstanding > 0:
        factor = 1 + (interest_rate / 100) * ESTIMATED_LOAN_MONTHS
        total_original = total_outstanding / factor
        total_interest = total_outstanding - total_original

    cash_in_box = calculate_cash_in_box(total_savings, total_outstanding, available_cash)

    return {
        "total_members": len(members),
        "total_savings": total_savings,
        "total_welfare": total_welfare,
        "total_shares": total_shares,
        "share_value": share_value,
        "appreciated_share_value": calculate_share_value_appreciation(share_value, total_interest, total_shares),
        "total_cash_in_box": cash_in_box,
        "total_loans_outstanding": total_outstanding,
        "total_original_loans": total_original,
        "total_interest_earned": total_interest,
        "group_welfare_amount": welfare_amount,
        "interest_rate": interest_rate,
        "available_loan_funds": max(0.0, cash_in_box),
    }


def update_member_shares(member, group):
    member.total_shares = calculate_member_shares(member.savings_balance, group.saving_per_share)
    return member


def validate_group_calculations(group, members):
    problems = []
    for m in members:
        expected = calculate_member_shares(m.savings_balance, group.saving_per_share)
        if m.total_shares != expected:
            problems.append(
                f"Member {m.first_name} {m.last_name} has incorrect shares: "
                f"{m.total_shares} (expected: {expected})"
            )
    return problems
