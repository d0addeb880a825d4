"""
FastAPI Server for Structural Tilt Screening

Provides REST endpoints that estimate how far a photographed building
element leans from vertical, compensated for the capturing device's tilt.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, UploadFile, File
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from tiltscan import __version__
from tiltscan.config.analysis_config import AnalysisConfig
from tiltscan.sensors.models import OrientationSample
from tiltscan.sensors.quality import capture_guidance
from tiltscan.tilt.aggregation import TiltAggregator
from tiltscan.tilt.analyzer import StructuralTiltAnalyzer, image_from_base64
from tiltscan.tilt.models import FailureKind, ImageAnalysis
from tiltscan.tilt.severity import (
    classify_severity,
    describe_severity,
    recommended_actions,
    risk_points,
    severity_color,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Structural Tilt Screening API",
    description="Estimates out-of-plumb tilt of building elements from photos and device orientation",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

analysis_config = AnalysisConfig()
analyzer = StructuralTiltAnalyzer(config=analysis_config)


class OrientationModel(BaseModel):
    """Device orientation recorded at shutter time"""
    pitch: float = Field(..., allow_inf_nan=False)
    roll: float = Field(..., allow_inf_nan=False)
    timestamp: Optional[float] = Field(None, allow_inf_nan=False)

    def to_sample(self) -> OrientationSample:
        return OrientationSample.from_angles(self.pitch, self.roll, self.timestamp)


class Base64ImageRequest(BaseModel):
    """Request body for a base64-encoded photo"""
    image: str  # Base64-encoded image (with or without data URL prefix)
    orientation: Optional[OrientationModel] = None


class BatchRequest(BaseModel):
    """Several photos of the same structural element"""
    images: List[Base64ImageRequest] = Field(..., min_length=1)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    line_extraction: bool


def _analysis_response(analysis: ImageAnalysis, orientation: Optional[OrientationSample]) -> dict:
    estimate = analysis.estimate
    output = analysis.to_dict()
    output["risk_points"] = risk_points(estimate.severity)
    output["description"] = describe_severity(estimate.severity)
    if orientation is not None:
        output["capture_quality"] = capture_guidance(orientation)
    return output


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy" if analyzer.capability.available else "degraded",
        version=__version__,
        line_extraction=analyzer.capability.available,
    )


@app.post("/analyze")
async def analyze_base64(request: Base64ImageRequest):
    """
    Estimate structural tilt in a base64-encoded photo.

    Analysis degradation (no lines, no orientation, processing failure) is
    reported through confidence and warning, not as an HTTP error.
    """
    image = image_from_base64(request.image)
    if image is None:
        raise HTTPException(status_code=400, detail="Failed to decode image")

    logger.info(f"Image decoded: {image.shape[1]}x{image.shape[0]}")

    sample = request.orientation.to_sample() if request.orientation else None
    analysis = await run_in_threadpool(analyzer.analyze, image, sample)

    logger.info(
        f"Tilt analysis complete: {analysis.estimate.corrected_vertical:.2f}°, "
        f"{analysis.estimate.severity.name}, confidence {analysis.estimate.confidence:.2f}"
    )
    return _analysis_response(analysis, sample)


@app.post("/analyze/upload")
async def analyze_upload(
    file: UploadFile = File(...),
    pitch: Optional[float] = None,
    roll: Optional[float] = None,
):
    """
    Estimate structural tilt in an uploaded photo.

    Device pitch and roll may be passed as query parameters.
    """
    logger.info(f"Received file upload: {file.filename}")

    contents = await file.read()
    sample = None
    if pitch is not None and roll is not None:
        try:
            sample = OrientationSample.from_angles(pitch, roll)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Invalid orientation: {e}")

    analysis = await run_in_threadpool(
        analyzer.analyze_bytes, contents, sample, file.filename,
    )
    if analysis.failure == FailureKind.DECODE_ERROR:
        raise HTTPException(status_code=400, detail="Failed to decode uploaded image")

    return _analysis_response(analysis, sample)


@app.post("/analyze/batch")
async def analyze_batch(request: BatchRequest):
    """
    Aggregate several photos of the same element into one estimate.

    Photos that fail to decode are kept in the batch as failed analyses and
    do not stop the others from being processed.
    """
    images = []
    samples = []
    for item in request.images:
        image = image_from_base64(item.image)
        images.append(image if image is not None else b"")
        samples.append(item.orientation.to_sample() if item.orientation else None)

    aggregator = TiltAggregator(analyzer)
    batch = await run_in_threadpool(aggregator.analyze_batch, images, samples)

    output = batch.to_dict()
    output["risk_points"] = risk_points(batch.aggregate.severity)
    output["description"] = describe_severity(batch.aggregate.severity)
    return output


@app.get("/severity/{tilt}")
async def get_severity(tilt: float):
    """Classify a corrected vertical tilt value"""
    severity = classify_severity(tilt)
    return {
        "tilt": tilt,
        "severity": severity.name,
        "risk_points": risk_points(severity),
        "color": severity_color(severity),
        "description": describe_severity(severity),
        "recommended_actions": recommended_actions(severity),
    }


@app.get("/config")
async def get_default_config():
    """Get the active analysis configuration"""
    return analysis_config.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
