"""Background job tasks"""

from uuid import UUID
import asyncio
import structlog

from cantina.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


async def _with_session(func, *args):
    from cantina.database import SessionLocal, engine

    try:
        async with SessionLocal() as db:
            return await func(db, *args)
    finally:
        # Pooled connections belong to this task's event loop
        await engine.dispose()


@celery_app.task(name="reconcile_customer_debts")
def reconcile_customer_debts():
    """Recompute every customer's debt total from the unpaid debt records"""
    from cantina.services.customers import reconcile_all_customers

    logger.info("Reconciling customer debts")
    corrected = run_async(_with_session(reconcile_all_customers))
    logger.info("Customer debt reconciliation finished", corrected=corrected)
    return corrected


@celery_app.task(name="recalculate_customer_debt")
def recalculate_customer_debt(customer_id: str):
    """Repair one customer's debt total, e.g. after a failed operation"""
    from cantina.services.customers import recalculate_customer_debt as recalculate

    logger.info("Recalculating customer debt", customer_id=customer_id)
    previous, total = run_async(_with_session(recalculate, UUID(customer_id)))
    return {"customer_id": customer_id, "previous": str(previous), "total_debt": str(total)}
