from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from treescope.routers import analysis

app = FastAPI(
    title="treescope",
    description="Source tree structure, complexity, duplication and tech-debt analysis.",
    version="1.0.0"
)

# Any origin, GET and POST only
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(analysis.router)

@app.get("/api-status")
async def api_status():
    return {"message": "treescope server is running. Visit /docs for API documentation."}
