"""FastAPI main application for the Triple Seven backend"""

from .ws.server import app


@app.get("/")
async def root():
    return {"message": "Triple Seven Card Game API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
