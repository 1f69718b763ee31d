"""
Setup script for the perception_libs package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="perception-libs",
    version="0.1.0",
    author="Kallol Saha",
    author_email="kallolsaharesearch@gmail.com",
    description="Bounding box cropping, organized point cloud and projection utilities for robot perception",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "scipy",
        "open3d",
        "pyyaml",
        "easydict",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    entry_points={
        'console_scripts': [
            'perception-draw-boxes=perception_libs.tools.draw_boxes:main',
        ],
    },
)
