from setuptools import setup, find_packages


setup(name='patchbrep',
      version='0.1.0',
      description='Consolidate subdivision surface patches into B-spline B-rep shells',
      author='patchbrep developers',
      license='MIT',
      packages=find_packages(include=['patchbrep', 'patchbrep.*']),
      install_requires=[
          'scipy',
          'numpy',
           ],
      extras_require={
          'plot': ['matplotlib'],
          'test': ['pytest', 'matplotlib'],
      },
      python_requires='>=3.9',
      long_description=('Merge adjacent regular bicubic patches into larger '
                        'B-spline superpatches and stitch them into shells '
                        'with shared vertices and edges.'),
      long_description_content_type='text/plain',
      keywords='subdivision surfaces, b-spline, brep, cad',
      classifiers=[
          'Development Status :: 3 - Alpha',
          'Intended Audience :: Science/Research',
          'Intended Audience :: Developers',
          'Topic :: Scientific/Engineering',
          'Topic :: Scientific/Engineering :: Mathematics',
          'License :: OSI Approved :: MIT License',
          'Programming Language :: Python :: 3.9',
      ],
      zip_safe=False)
