import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()


setuptools.setup(
    name="mqtt-trace",
    version="1.0.0",
    description="Record name/rssi fields of MQTT JSON messages to a file",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        'paho-mqtt>=2.0', # MQTT client
        'pyyaml', # YAML parser
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'mqtt-trace = mqtt_trace.run.trace_mqtt:main',
        ],
    },
    include_package_data=True,
)
