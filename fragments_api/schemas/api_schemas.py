"""
API Request/Response Schemas using Pydantic.

Structure of HTTP requests and responses for the Fragments API.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class FragmentsMetadataSchema(BaseModel):
    original_filename: Optional[str] = Field(None, description="Filename of the uploaded model")
    uploaded_at: Optional[str] = Field(None, description="ISO timestamp of the upload")
    file_size: Optional[int] = Field(None, description="Size of the uploaded model in bytes")
    data_size: Optional[int] = Field(None, description="Size of the fragments artifact in bytes")
    fragments_count: Optional[int] = Field(None, description="Number of fragments, if the engine reports it")
    bounding_box: Optional[Dict[str, List[float]]] = Field(None, description="Bounding volume with min/max corners")

    model_config = {"extra": "allow"}


class FragmentsUploadResponse(BaseModel):
    id: str = Field(..., description="Unique identifier of the created fragments")
    data: str = Field(..., description="Base64 encoded fragments artifact")
    metadata: FragmentsMetadataSchema = Field(..., description="Metadata recorded for the upload")


class FragmentsDetail(BaseModel):
    id: str = Field(..., description="Unique identifier of the stored fragments")
    data: str = Field(..., description="Base64 encoded fragments artifact")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Recorded metadata, null if absent")


class StoredFragmentsSummary(BaseModel):
    id: str = Field(..., description="Identifier of the stored fragments")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Recorded metadata, null if absent")
    saved_at: Optional[str] = Field(None, description="ISO timestamp of the metadata write")
    has_data: bool = Field(True, description="Whether the fragments blob is present")
    error: Optional[str] = Field(None, description="Set when the metadata could not be read")


class FragmentsListResponse(BaseModel):
    fragments: List[StoredFragmentsSummary] = Field(..., description="All stored fragments")
    cache: Dict[str, Any] = Field(default_factory=dict, description="Snapshot of the conversion cache")
