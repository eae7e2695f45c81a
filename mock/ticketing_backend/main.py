from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, File, Header, HTTPException, UploadFile
from fastapi.responses import JSONResponse

app = FastAPI(title="Mock Ticketing Backend", version="1.0.0")

TOKEN = "demo-token"

EVENT = {"id": 1, "name": "Jazz Night", "price": 50000, "quota": 100, "location": "Jakarta"}
AVAILABLE_DISCOUNTS = {
    "points": {"available": 50000, "maxUsage": 50000},
    "coupon": {"id": 1, "name": "REFERRAL", "nominal": 20000, "quota": 1},
    "voucher": {
        "id": 1,
        "name": "EARLYBIRD",
        "nominal": 15000,
        "quota": 10,
        "startDate": "2024-01-01T00:00:00Z",
        "endDate": "2099-01-01T00:00:00Z",
    },
}
TRANSACTIONS = {
    1: {
        "id": 1,
        "quantity": 2,
        "totalPrice": 100000,
        "totalDiscount": 0,
        "status": "WaitingForPayment",
        "createdAt": (datetime.now(timezone.utc) - timedelta(minutes=30)).isoformat(),
        "paymentProof": None,
    }
}


def require_token(authorization: str | None):
    if authorization != f"Bearer {TOKEN}":
        raise HTTPException(status_code=401, detail="Unauthorized")


def error(status: int, message: str):
    return JSONResponse(status_code=status, content={"message": message})


def totals(txn, body):
    base = EVENT["price"] * txn["quantity"]
    discount = 0
    if body.get("use_coupon"):
        discount += AVAILABLE_DISCOUNTS["coupon"]["nominal"]
    if body.get("use_voucher"):
        discount += AVAILABLE_DISCOUNTS["voucher"]["nominal"]
    if body.get("use_points"):
        discount += min(body.get("points_amount") or 0, AVAILABLE_DISCOUNTS["points"]["available"])
    discount = min(discount, base)
    return {"transactionId": txn["id"], "basePrice": base, "totalDiscount": discount, "finalPrice": base - discount}


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/api/auth/login")
def login(body: dict):
    if body.get("password") != "secret":
        return error(401, "Invalid email or password")
    return {"token": TOKEN}


@app.get("/api/transactions/user")
def user_transactions(authorization: str | None = Header(None)):
    require_token(authorization)
    return {
        "message": "ok",
        "data": [
            {**txn, "event": EVENT, "transactionStatus": {"id": 1, "name": txn["status"]}}
            for txn in TRANSACTIONS.values()
        ],
    }


@app.get("/api/transactions/{transaction_id}")
def get_transaction(transaction_id: int, authorization: str | None = Header(None)):
    require_token(authorization)
    txn = TRANSACTIONS.get(transaction_id)
    if txn is None:
        return error(404, "Transaction not found")
    return {"success": True, "data": {"transaction": txn, "event": EVENT, "availableDiscounts": AVAILABLE_DISCOUNTS}}


@app.patch("/api/transactions/{transaction_id}")
def apply_discount(transaction_id: int, body: dict, authorization: str | None = Header(None)):
    require_token(authorization)
    txn = TRANSACTIONS.get(transaction_id)
    if txn is None:
        return error(404, "Transaction not found")
    return {"message": "Discount applied", "data": totals(txn, body)}


@app.patch("/api/transactions/{transaction_id}/confirm")
def confirm(transaction_id: int, body: dict, authorization: str | None = Header(None)):
    require_token(authorization)
    txn = TRANSACTIONS.get(transaction_id)
    if txn is None:
        return error(404, "Transaction not found")
    applied = totals(txn, body)
    txn["totalDiscount"] = applied["totalDiscount"]
    txn["totalPrice"] = applied["finalPrice"]
    return {"message": "Transaction confirmed"}


@app.patch("/api/transactions/{transaction_id}/payment-proof")
async def payment_proof(
    transaction_id: int,
    payment_proof: UploadFile = File(...),
    authorization: str | None = Header(None),
):
    require_token(authorization)
    txn = TRANSACTIONS.get(transaction_id)
    if txn is None:
        return error(404, "Transaction not found")
    if txn["status"] != "WaitingForPayment":
        return error(400, "Transaction is not waiting for payment")
    txn["status"] = "WaitingForAdminConfirmation"
    txn["paymentProof"] = f"/uploads/{payment_proof.filename}"
    return {"message": "Payment proof uploaded"}


@app.patch("/api/transactions/{transaction_id}/{decision}")
def review(transaction_id: int, decision: str, authorization: str | None = Header(None)):
    require_token(authorization)
    txn = TRANSACTIONS.get(transaction_id)
    if txn is None or decision not in ("accept", "reject"):
        return error(404, "Not found")
    if txn["status"] != "WaitingForAdminConfirmation":
        return error(400, "Transaction is not waiting for confirmation")
    txn["status"] = "Done" if decision == "accept" else "Rejected"
    return {"message": f"Transaction {txn['status']}"}
