from setuptools import setup

setup(name="not-this-name")
