from wasm_js.cli import main

raise SystemExit(main())
