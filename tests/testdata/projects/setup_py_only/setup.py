from setuptools import setup

setup(
    name="demo-pkg",
    version="1.0.0",
    py_modules=["demo"],
)
