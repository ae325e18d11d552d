"""Image Analysis capability consumed by the detection stages."""
from .analysis import HSVColor, ImageAnalysis, OpenCVImageAnalysis
