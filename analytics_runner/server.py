# server.py
"""HTTP entry point: POST a test definition, get the result list back."""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .errors import InvalidInput, RunnerError
from .models import parse_options, parse_test_definition, results_to_json
from .runner import run_test

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD", "TRACE"]

app = FastAPI(title="Analytics Test Runner")
app.state.run_test = run_test


@app.api_route("/", methods=ALL_METHODS)
@app.api_route("/runTest", methods=ALL_METHODS)
async def run_test_endpoint(request: Request):
    if request.method != "POST":
        raise HTTPException(status_code=400, detail="Invalid request method")

    try:
        body = await request.json()
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid test sequence") from e
    if not isinstance(body, dict) or not isinstance(body.get("test"), dict):
        raise HTTPException(status_code=400, detail="Invalid test sequence")
    if body.get("options") is not None and not isinstance(body["options"], dict):
        raise HTTPException(status_code=400, detail="Invalid options")

    try:
        test = parse_test_definition(body["test"])
        options = parse_options(body.get("options"))
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info(f"Received test '{test.name}' with {len(options.trackers)} tracker(s)")
    try:
        results = await request.app.state.run_test(test, options)
    except RunnerError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Test '{test.name}' failed")
        raise HTTPException(status_code=400, detail=f"{type(e).__name__}: {e}") from e

    return JSONResponse(content=results_to_json(results))
