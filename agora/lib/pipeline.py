import os
import pandas as pd
import multiprocessing
from rich.console import Console
from rich.progress import track


class Pipeline:
    def __init__(self):
        self.console = Console()
        self.df = None
        self.csv_file_input = None
        self.csv_file_output = None

    def read_csv(self):
        # Every cell stays a string; blanks are empty strings rather than NaN
        self.console.log(f"Reading CSV {self.csv_file_input}...")
        self.df = pd.read_csv(self.csv_file_input, dtype=str, keep_default_na=False)
        self.console.log(f"Total number of rows: {len(self.df)}")

    def execute_action(self, action, column, parallel=True):
        # Executes an action on the DataFrame, either in parallel or sequentially
        mode = "parallel" if parallel else "sequential"
        self.console.log(f"Running {action.__name__} (in {mode})...")
        rows = self.df.to_dict(orient='records')

        if parallel:
            with multiprocessing.Pool() as pool:
                values = list(
                    track(
                        pool.imap(action, rows),
                        total=len(self.df),
                        description=f"Processing with {action.__name__}..."
                    )
                )
        else:
            values = list(
                track(
                    map(action, rows),
                    total=len(self.df),
                    description=f"Processing with {action.__name__}..."
                )
            )

        self.df[column] = values

    def save_csv(self):
        # Saves the DataFrame to a CSV file.
        self.console.log(f"Saving DataFrame to {self.csv_file_output}...")
        output_dir = os.path.dirname(self.csv_file_output)
        if output_dir and not os.path.exists(output_dir):
            os.makedirs(output_dir)
        self.df.to_csv(self.csv_file_output, index=False)
        self.console.log(f"Saved {len(self.df)} rows")

    def process(self):
        raise NotImplementedError("Pipeline subclasses implement process()")
